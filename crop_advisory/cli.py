"""CLI for the crop advisory engine."""
import argparse
import json
import logging
import sys
from pathlib import Path

from .crops import REGISTRY, CropNotFound
from .orchestrator import CropAdvisoryOrchestrator
from .weather import LookupFailure, fetch_snapshot

log = logging.getLogger("crop_advisory")


def _list_crops() -> None:
    print(f"{len(REGISTRY)} crops available:")
    for key, profile in REGISTRY.list_all():
        s = profile.summary()
        print(f"  {key:<8} {s['name']:<12} temp {s['optimal_temperature']:<14} "
              f"humidity {s['optimal_humidity']:<10} water {s['water_requirement']}")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Crop Advisory")
    p.add_argument("--location", help="Place name, e.g. London")
    p.add_argument("--crop", help=f"Crop key ({', '.join(REGISTRY.keys())})")
    p.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12",
                   help="Calendar month (default: current month)")
    p.add_argument("--demo", action="store_true", default=None, help="Use mock weather data")
    p.add_argument("--json", action="store_true", help="Print JSON instead of text")
    p.add_argument("--output", help="Also save the JSON result to this path")
    p.add_argument("--list-crops", action="store_true", help="List crops and exit")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.list_crops:
        _list_crops()
        return 0

    if not args.location or not args.crop:
        p.error("--location and --crop are required")

    orchestrator = CropAdvisoryOrchestrator(
        fetcher=lambda location: fetch_snapshot(location, demo=args.demo)
    )
    try:
        result = orchestrator.analyze(args.location, args.crop, args.month)
    except CropNotFound as e:
        sys.exit(str(e))
    except LookupFailure as e:
        sys.exit(f"Weather lookup failed: {e}")
    except ValueError as e:
        sys.exit(str(e))

    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    print(payload if args.json else result.to_text())

    if args.output:
        out = Path(args.output).expanduser().resolve()
        out.write_text(payload, encoding="utf-8")
        print(f"Saved: {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
