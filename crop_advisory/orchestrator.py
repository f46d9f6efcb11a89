"""
Crop Advisory Orchestrator

Ties the components together for one user-initiated analysis:
1. Validate the location and crop selection
2. Resolve the crop profile from the registry
3. Fetch current weather and forecast for the location
4. Evaluate the advisory rules for the current month
5. Return an AnalysisResult for display

Usage:
    from crop_advisory.orchestrator import CropAdvisoryOrchestrator

    orchestrator = CropAdvisoryOrchestrator()
    result = orchestrator.analyze("London", "wheat")
    print(result.to_text())
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .advisory import AdvisoryEntry, evaluate
from .config import RULES, RulesConfig
from .crops import REGISTRY, CropProfile, CropRegistry, format_number
from .weather import ForecastDay, Location, WeatherReading, WeatherSnapshot, fetch_snapshot

log = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@dataclass
class AnalysisResult:
    """Everything the presentation layer needs after an analysis."""
    location: Location
    crop_key: str
    crop: CropProfile
    month: int
    current: WeatherReading
    forecast: Tuple[ForecastDay, ...]
    recommendations: List[AdvisoryEntry]
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "crop": {"key": self.crop_key, **self.crop.summary()},
            "month": self.month,
            "current": self.current.to_dict(),
            "forecast": [day.to_dict() for day in self.forecast],
            "recommendations": [entry.to_dict() for entry in self.recommendations],
            "timestamp": self.timestamp.isoformat(),
        }

    def to_text(self) -> str:
        summary = self.crop.summary()
        w = self.current
        num = format_number
        lines = [
            f"Location: {self.location.display_name()}",
            f"Weather: {num(w.temperature)}°C, {num(w.humidity)}% RH, wind {num(w.wind_speed)}, "
            f"rain {num(w.rainfall)}mm ({w.description})",
            "Forecast:",
        ]
        for day in self.forecast:
            lines.append(f"  {day.label:<9} {day.date.isoformat()}  {num(day.temperature)}°C  "
                         f"{num(day.humidity)}%  {num(day.rainfall)}mm  {day.description}")
        lines += [
            "",
            f"Selected Crop: {summary['name']}",
            f"  Optimal Temperature: {summary['optimal_temperature']}",
            f"  Optimal Humidity: {summary['optimal_humidity']}",
            f"  Water Requirement: {summary['water_requirement']}",
            "",
            "Recommendations:",
        ]
        if not self.recommendations:
            lines.append("  (none)")
        for entry in self.recommendations:
            lines.append(f"  [{entry.severity.value.upper()}] {entry.category.value}: {entry.message}")
            lines.append(f"      Action: {entry.action}")
        return "\n".join(lines)


class CropAdvisoryOrchestrator:
    """
    Runs one analysis per call. Holds no per-analysis state, so a single
    instance can serve concurrent callers.
    """

    def __init__(
        self,
        registry: CropRegistry = REGISTRY,
        fetcher: Callable[[str], WeatherSnapshot] = fetch_snapshot,
        today: Callable[[], date] = date.today,
        thresholds: RulesConfig = RULES,
    ):
        self.registry = registry
        self.fetcher = fetcher
        self.today = today
        self.thresholds = thresholds

    def analyze(self, location: str, crop_key: str, month: Optional[int] = None) -> AnalysisResult:
        """
        Fetch weather for `location` and advise on `crop_key`.

        Raises:
            ValueError: location or crop is blank, or month is outside 1-12
            CropNotFound: crop_key is not registered
            LookupFailure: weather could not be fetched; no advisories are produced
        """
        location = (location or "").strip()
        crop_key = (crop_key or "").strip().lower()
        if not location or not crop_key:
            raise ValueError("Please enter a location and select a crop")
        if month is not None and not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        crop = self.registry.lookup(crop_key)
        snapshot = self.fetcher(location)
        month = month or self.today().month

        recommendations = evaluate(month, snapshot.current, snapshot.forecast, crop, self.thresholds)
        log.info(f"Analysis for {crop.name} at {snapshot.location.display_name()} "
                 f"(month {month}): {len(recommendations)} recommendations")

        return AnalysisResult(
            location=snapshot.location,
            crop_key=crop_key,
            crop=crop,
            month=month,
            current=snapshot.current,
            forecast=tuple(snapshot.forecast),
            recommendations=recommendations,
        )
