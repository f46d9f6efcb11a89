"""
Advisory Engine

Maps current weather, the forecast, a crop profile and the calendar month to
an ordered list of advisory entries. Rules run in a fixed order and each
contributes at most one entry, so consumers can display entries in the order
they are emitted.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .config import RULES, RulesConfig
from .crops import CropProfile, WaterRequirement, format_number
from .weather import ForecastDay, WeatherReading

log = logging.getLogger(__name__)


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


class Category(str, Enum):
    TEMPERATURE = "Temperature"
    HUMIDITY = "Humidity"
    IRRIGATION = "Irrigation"
    PLANTING = "Planting"
    HARVEST = "Harvest"
    DISEASE_RISK = "Disease Risk"


@dataclass(frozen=True)
class AdvisoryEntry:
    severity: Severity
    category: Category
    message: str
    action: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "action": self.action,
        }


@dataclass(frozen=True)
class AdvisoryContext:
    """Inputs shared by every rule for one evaluation."""
    current_month: int
    weather: WeatherReading
    forecast: Sequence[ForecastDay]
    crop: CropProfile
    thresholds: RulesConfig = RULES


Rule = Callable[[AdvisoryContext], Optional[AdvisoryEntry]]


def upcoming_rainfall(forecast: Sequence[ForecastDay], window=RULES.rain_window) -> float:
    """Total rain over the days following today; missing days count as zero."""
    start, stop = window
    return sum(day.rainfall for day in forecast[start:stop])


# ─────────────────────────────────────────────────────────────────────────────
# RULES
# ─────────────────────────────────────────────────────────────────────────────

def temperature_rule(ctx: AdvisoryContext) -> AdvisoryEntry:
    temp = ctx.weather.temperature
    band = ctx.crop.optimal_temperature
    bounds = f"({format_number(band.min)}°C - {format_number(band.max)}°C)"

    if temp in band:
        return AdvisoryEntry(
            Severity.SUCCESS, Category.TEMPERATURE,
            f"Temperature ({format_number(temp)}°C) is optimal for {ctx.crop.name}.",
            "Continue current practices",
        )
    if band.below(temp):
        return AdvisoryEntry(
            Severity.WARNING, Category.TEMPERATURE,
            f"Temperature ({format_number(temp)}°C) is below optimal range {bounds}. "
            f"Consider using row covers or greenhouses.",
            "Protect crops from cold stress",
        )
    return AdvisoryEntry(
        Severity.WARNING, Category.TEMPERATURE,
        f"Temperature ({format_number(temp)}°C) is above optimal range {bounds}. "
        f"Increase irrigation and provide shade.",
        "Implement cooling measures",
    )


def humidity_rule(ctx: AdvisoryContext) -> AdvisoryEntry:
    humidity = ctx.weather.humidity
    band = ctx.crop.optimal_humidity
    bounds = f"({format_number(band.min)}% - {format_number(band.max)}%)"

    if humidity in band:
        return AdvisoryEntry(
            Severity.SUCCESS, Category.HUMIDITY,
            f"Humidity ({format_number(humidity)}%) is optimal for {ctx.crop.name}.",
            "Continue current practices",
        )
    if band.below(humidity):
        return AdvisoryEntry(
            Severity.WARNING, Category.HUMIDITY,
            f"Humidity ({format_number(humidity)}%) is below optimal range {bounds}. "
            f"Increase irrigation frequency.",
            "Monitor soil moisture closely",
        )
    return AdvisoryEntry(
        Severity.WARNING, Category.HUMIDITY,
        f"Humidity ({format_number(humidity)}%) is above optimal range {bounds}. "
        f"Ensure good ventilation and watch for fungal diseases.",
        "Improve air circulation",
    )


def irrigation_rule(ctx: AdvisoryContext) -> AdvisoryEntry:
    t = ctx.thresholds
    rain = upcoming_rainfall(ctx.forecast, t.rain_window)

    if rain > t.heavy_rain_mm:
        return AdvisoryEntry(
            Severity.INFO, Category.IRRIGATION,
            f"Heavy rainfall expected ({rain:.1f}mm). Reduce irrigation and ensure drainage.",
            "Prepare for excess water management",
        )
    if rain < t.low_rain_mm and ctx.crop.water_requirement is WaterRequirement.HIGH:
        return AdvisoryEntry(
            Severity.WARNING, Category.IRRIGATION,
            f"Low rainfall expected ({rain:.1f}mm). "
            f"Increase irrigation for water-intensive {ctx.crop.name}.",
            "Plan additional watering schedule",
        )
    return AdvisoryEntry(
        Severity.INFO, Category.IRRIGATION,
        f"Expected rainfall ({rain:.1f}mm) is adequate for {ctx.crop.name}.",
        "Monitor soil moisture regularly",
    )


def planting_rule(ctx: AdvisoryContext) -> Optional[AdvisoryEntry]:
    if ctx.current_month not in ctx.crop.planting_months:
        return None
    return AdvisoryEntry(
        Severity.SUCCESS, Category.PLANTING,
        f"This is an optimal month for planting {ctx.crop.name}.",
        "Consider starting new plantings",
    )


def harvest_rule(ctx: AdvisoryContext) -> Optional[AdvisoryEntry]:
    if ctx.current_month not in ctx.crop.harvest_months:
        return None
    return AdvisoryEntry(
        Severity.INFO, Category.HARVEST,
        f"This is harvest season for {ctx.crop.name}. Monitor crop maturity.",
        "Prepare for harvesting activities",
    )


def disease_risk_rule(ctx: AdvisoryContext) -> Optional[AdvisoryEntry]:
    """Fungal risk from warm, humid air; applies to every crop alike."""
    t = ctx.thresholds
    humidity, temp = ctx.weather.humidity, ctx.weather.temperature
    if not (humidity > t.disease_humidity_pct and temp > t.disease_temp_c):
        return None
    return AdvisoryEntry(
        Severity.WARNING, Category.DISEASE_RISK,
        f"High humidity ({format_number(humidity)}%) and temperature ({format_number(temp)}°C) favor fungal diseases.",
        "Apply preventive fungicide treatments",
    )


# Emission order is part of the output contract.
RULE_ORDER: Sequence[Rule] = (
    temperature_rule,
    humidity_rule,
    irrigation_rule,
    planting_rule,
    harvest_rule,
    disease_risk_rule,
)


def evaluate(
    current_month: int,
    weather: WeatherReading,
    forecast: Sequence[ForecastDay],
    crop: Optional[CropProfile],
    thresholds: RulesConfig = RULES,
) -> List[AdvisoryEntry]:
    """
    Generate advisories for one crop under the given weather.

    Args:
        current_month: Calendar month, 1-12
        weather: Current conditions
        forecast: Daily forecast, index 0 being today
        crop: Profile to evaluate against; None yields no advisories
        thresholds: Rule thresholds

    Returns:
        Entries in rule order. Never raises for numeric input.
    """
    if crop is None:
        return []

    ctx = AdvisoryContext(current_month, weather, tuple(forecast), crop, thresholds)
    entries = [entry for entry in (rule(ctx) for rule in RULE_ORDER) if entry is not None]
    log.debug(f"{crop.name}: {len(entries)} advisories for month {current_month}")
    return entries
