"""
Crop Registry

Static agronomic tolerance data for the crops the advisory engine knows about.
The registry is built once at import time and is read-only afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Tuple


class InvalidCropProfile(ValueError):
    """Raised when a crop profile violates its invariants."""


class CropNotFound(KeyError):
    """Raised when a crop key is not in the registry."""

    def __init__(self, key: str, available: Iterable[str] = ()):
        self.key = key
        self.available = list(available)
        super().__init__(key)

    def __str__(self) -> str:
        if self.available:
            return f"Unknown crop '{self.key}'. Available: {', '.join(self.available)}"
        return f"Unknown crop '{self.key}'"


def format_number(value: float) -> str:
    """Display text for a reading: integral values drop the `.0`, others print in full."""
    if isinstance(value, int):
        return str(value)
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


class WaterRequirement(Enum):
    """Coarse sensitivity of a crop to irrigation shortfall."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class OptimalRange:
    """Closed interval [min, max] considered ideal for a weather variable."""
    min: float
    max: float

    def __post_init__(self):
        if not self.min < self.max:
            raise InvalidCropProfile(f"Range minimum {self.min} must be below maximum {self.max}")

    def below(self, value: float) -> bool:
        return value < self.min

    def __contains__(self, value: float) -> bool:
        return self.min <= value <= self.max

    def to_list(self) -> List[float]:
        return [self.min, self.max]


def _months(values: Iterable[int], label: str) -> FrozenSet[int]:
    months = frozenset(values)
    bad = sorted(m for m in months if not 1 <= m <= 12)
    if bad:
        raise InvalidCropProfile(f"{label} contains invalid months: {bad}")
    return months


@dataclass(frozen=True)
class CropProfile:
    name: str
    optimal_temperature: OptimalRange   # °C
    optimal_humidity: OptimalRange      # % relative humidity
    water_requirement: WaterRequirement
    growth_stages: Tuple[str, ...]
    planting_months: FrozenSet[int]
    harvest_months: FrozenSet[int]

    def __post_init__(self):
        # Normalise the collection fields so profiles stay hashable and immutable.
        object.__setattr__(self, "growth_stages", tuple(self.growth_stages))
        object.__setattr__(self, "planting_months", _months(self.planting_months, "planting_months"))
        object.__setattr__(self, "harvest_months", _months(self.harvest_months, "harvest_months"))
        if not isinstance(self.water_requirement, WaterRequirement):
            try:
                object.__setattr__(self, "water_requirement", WaterRequirement(self.water_requirement))
            except ValueError as e:
                raise InvalidCropProfile(str(e)) from e

    @classmethod
    def from_dict(cls, params: Dict) -> "CropProfile":
        """Build a profile from a plain parameter dict."""
        try:
            return cls(
                name=params["name"],
                optimal_temperature=OptimalRange(*params["optimal_temp"]),
                optimal_humidity=OptimalRange(*params["optimal_humidity"]),
                water_requirement=params["water_requirement"],
                growth_stages=params.get("growth_stages", ()),
                planting_months=params.get("planting_months", ()),
                harvest_months=params.get("harvest_months", ()),
            )
        except (KeyError, TypeError) as e:
            raise InvalidCropProfile(f"Malformed crop parameters: {e}") from e

    def summary(self) -> Dict[str, str]:
        """Display summary of the crop's tolerances."""
        t, h = self.optimal_temperature, self.optimal_humidity
        return {
            "name": self.name,
            "optimal_temperature": f"{format_number(t.min)}°C - {format_number(t.max)}°C",
            "optimal_humidity": f"{format_number(h.min)}% - {format_number(h.max)}%",
            "water_requirement": self.water_requirement.value,
        }

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "optimal_temperature": self.optimal_temperature.to_list(),
            "optimal_humidity": self.optimal_humidity.to_list(),
            "water_requirement": self.water_requirement.value,
            "growth_stages": list(self.growth_stages),
            "planting_months": sorted(self.planting_months),
            "harvest_months": sorted(self.harvest_months),
        }


class CropRegistry:
    """
    Read-only mapping of crop keys to profiles.

    Keys keep the order they were registered in; `list_all` exposes that order.
    """

    def __init__(self, profiles: Iterable[Tuple[str, CropProfile]]):
        table: Dict[str, CropProfile] = {}
        for key, profile in profiles:
            if key in table:
                raise InvalidCropProfile(f"Duplicate crop key '{key}'")
            table[key] = profile
        self._profiles: Mapping[str, CropProfile] = MappingProxyType(table)

    def lookup(self, key: str) -> CropProfile:
        try:
            return self._profiles[key]
        except KeyError:
            raise CropNotFound(key, self._profiles.keys()) from None

    def list_all(self) -> List[Tuple[str, CropProfile]]:
        return list(self._profiles.items())

    def keys(self) -> List[str]:
        return list(self._profiles.keys())

    def __len__(self) -> int:
        return len(self._profiles)


# ─────────────────────────────────────────────────────────────────────────────
# CROP PARAMETERS
# ─────────────────────────────────────────────────────────────────────────────
CROP_PARAMS = {
    "rice": {
        "name": "Rice",
        "optimal_temp": (20, 35),
        "optimal_humidity": (60, 80),
        "water_requirement": "high",
        "growth_stages": ("seedling", "tillering", "flowering", "maturity"),
        "planting_months": (5, 6, 7),
        "harvest_months": (10, 11, 12),
    },
    "wheat": {
        "name": "Wheat",
        "optimal_temp": (15, 25),
        "optimal_humidity": (40, 70),
        "water_requirement": "medium",
        "growth_stages": ("germination", "tillering", "heading", "maturity"),
        "planting_months": (11, 12, 1),
        "harvest_months": (4, 5),
    },
    "corn": {
        "name": "Corn/Maize",
        "optimal_temp": (18, 30),
        "optimal_humidity": (50, 75),
        "water_requirement": "high",
        "growth_stages": ("emergence", "vegetative", "reproductive", "maturity"),
        "planting_months": (3, 4, 5),
        "harvest_months": (8, 9, 10),
    },
    "tomato": {
        "name": "Tomato",
        "optimal_temp": (18, 26),
        "optimal_humidity": (60, 80),
        "water_requirement": "medium",
        "growth_stages": ("seedling", "flowering", "fruiting", "harvest"),
        "planting_months": (2, 3, 4, 9, 10),
        "harvest_months": (5, 6, 7, 12, 1),
    },
}

REGISTRY = CropRegistry((key, CropProfile.from_dict(p)) for key, p in CROP_PARAMS.items())


def lookup(key: str) -> CropProfile:
    """Resolve a crop key against the default registry."""
    return REGISTRY.lookup(key)


def list_all() -> List[Tuple[str, CropProfile]]:
    return REGISTRY.list_all()
