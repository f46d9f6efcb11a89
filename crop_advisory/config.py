"""Project configuration: rule thresholds, weather source and service settings."""
import os
from dataclasses import dataclass, field
from typing import Tuple


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ─────────────────────────────────────────────────────────────────────────────
# RULE THRESHOLDS
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class RulesConfig:
    heavy_rain_mm: float = 30.0      # upcoming rain above this -> reduce irrigation
    low_rain_mm: float = 5.0         # upcoming rain below this -> irrigate thirsty crops
    rain_window: Tuple[int, int] = (1, 4)  # forecast slice [start, stop)
    disease_humidity_pct: float = 80.0
    disease_temp_c: float = 20.0

RULES = RulesConfig()

# ─────────────────────────────────────────────────────────────────────────────
# WEATHER SOURCE
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class WeatherSourceConfig:
    geocode_url: str = "https://api.openweathermap.org/geo/1.0/direct"
    current_url: str = "https://api.openweathermap.org/data/2.5/weather"
    forecast_url: str = "https://api.openweathermap.org/data/2.5/forecast"
    api_key: str = field(default_factory=lambda: os.getenv("OPENWEATHER_API_KEY", ""))
    demo_mode: bool = field(
        default_factory=lambda: _env_flag("CROP_ADVISORY_DEMO", not os.getenv("OPENWEATHER_API_KEY"))
    )
    timeout_s: float = 10.0
    max_retries: int = 3
    forecast_days: int = 5

WEATHER = WeatherSourceConfig()

# ─────────────────────────────────────────────────────────────────────────────
# API CONFIG
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class APIConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

API = APIConfig()
