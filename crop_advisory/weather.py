"""
Weather data module - current conditions and a daily forecast for a place name.

Live data comes from the OpenWeather geocoding, current weather and
5-day/3-hour forecast endpoints. Demo mode serves a fixed reading so the
advisory flow can be exercised without an API key.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
import requests

from .config import WEATHER, WeatherSourceConfig

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ERRORS
# ═══════════════════════════════════════════════════════════════════════════════

class WeatherError(Exception):
    """Base class for weather source failures."""


class LookupFailure(WeatherError):
    """The location could not be resolved to weather data."""


class UpstreamUnavailable(LookupFailure):
    """The weather service timed out, failed, or is not configured."""


# ═══════════════════════════════════════════════════════════════════════════════
# DATA SHAPES
# ═══════════════════════════════════════════════════════════════════════════════

class Condition(str, Enum):
    """Sky state tags."""
    SUNNY = "sunny"
    PARTLY_CLOUDY = "partly-cloudy"
    CLOUDY = "cloudy"
    LIGHT_RAIN = "light-rain"
    RAIN = "rain"
    STORM = "storm"
    SNOW = "snow"
    MIST = "mist"


def condition_from_code(code: int) -> Condition:
    """Map an OpenWeather condition id to a sky state tag."""
    group = code // 100
    if group == 2:
        return Condition.STORM
    if group == 3 or code in (500, 520):
        return Condition.LIGHT_RAIN
    if group == 5:
        return Condition.RAIN
    if group == 6:
        return Condition.SNOW
    if group == 7:
        return Condition.MIST
    if code == 800:
        return Condition.SUNNY
    if code in (801, 802):
        return Condition.PARTLY_CLOUDY
    return Condition.CLOUDY


@dataclass(frozen=True)
class WeatherReading:
    """Current conditions at a location."""
    temperature: float   # °C
    humidity: float      # % relative humidity
    wind_speed: float    # as reported by the source
    rainfall: float      # mm, current day
    condition: str
    description: str
    pressure: Optional[float] = None    # hPa
    visibility: Optional[float] = None  # km

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
            "rainfall": self.rainfall,
            "condition": self.condition,
            "description": self.description,
            "pressure": self.pressure,
            "visibility": self.visibility,
        }


@dataclass(frozen=True)
class ForecastDay:
    """One day of forecast; index 0 of a forecast is the current day."""
    label: str
    date: date
    temperature: float
    humidity: float
    rainfall: float
    condition: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "date": self.date.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "rainfall": self.rainfall,
            "condition": self.condition,
            "description": self.description,
        }


@dataclass(frozen=True)
class Location:
    name: str
    country: str = ""
    state: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None

    def display_name(self) -> str:
        return ", ".join(p for p in (self.name, self.state, self.country) if p)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "country": self.country, "state": self.state,
                "lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class WeatherSnapshot:
    location: Location
    current: WeatherReading
    forecast: Tuple[ForecastDay, ...] = field(default_factory=tuple)


def day_label(offset: int) -> str:
    """Relative day name for a forecast offset from today."""
    if offset == 0:
        return "Today"
    if offset == 1:
        return "Tomorrow"
    return f"Day {offset + 1}"


# ═══════════════════════════════════════════════════════════════════════════════
# DEMO SOURCE
# ═══════════════════════════════════════════════════════════════════════════════

DEMO_CURRENT = WeatherReading(
    temperature=24,
    humidity=65,
    wind_speed=12,
    rainfall=2.5,
    condition=Condition.PARTLY_CLOUDY.value,
    description="partly cloudy",
    pressure=1013,
    visibility=10,
)

# (temperature, humidity, rainfall, condition, description)
DEMO_FORECAST = [
    (24, 65, 2.5, Condition.PARTLY_CLOUDY, "partly cloudy"),
    (26, 70, 0, Condition.SUNNY, "clear sky"),
    (22, 80, 15, Condition.RAIN, "moderate rain"),
    (20, 75, 8, Condition.LIGHT_RAIN, "light rain"),
    (25, 60, 0, Condition.SUNNY, "clear sky"),
]


def demo_snapshot(location_query: str, today: Optional[date] = None) -> WeatherSnapshot:
    """Fixed mock weather for any location name."""
    today = today or date.today()
    forecast = tuple(
        ForecastDay(
            label=day_label(i),
            date=today + timedelta(days=i),
            temperature=temp,
            humidity=hum,
            rainfall=rain,
            condition=cond.value,
            description=desc,
        )
        for i, (temp, hum, rain, cond, desc) in enumerate(DEMO_FORECAST)
    )
    return WeatherSnapshot(
        location=Location(name=location_query, country="Demo"),
        current=DEMO_CURRENT,
        forecast=forecast,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# RETRY/BACKOFF UTILITIES
# ═══════════════════════════════════════════════════════════════════════════════

def exponential_backoff(attempt: int, base: float = 1.0, max_delay: float = 30.0) -> float:
    """Calculate delay with exponential backoff."""
    return min(base * (2 ** attempt), max_delay)


def request_with_retry(url: str, params: dict, timeout: float = 10.0, max_retries: int = 3) -> Any:
    """
    GET a JSON document, retrying rate limits, server errors and timeouts.

    Raises:
        LookupFailure: the service answered 404 for the request.
        UpstreamUnavailable: bad API key, or every attempt failed.
    """
    for attempt in range(max_retries):
        try:
            response = requests.get(url, params=params, timeout=timeout)
        except requests.exceptions.Timeout:
            log.warning(f"Timeout (attempt {attempt + 1})")
        except requests.exceptions.RequestException as e:
            log.warning(f"Request failed: {e} (attempt {attempt + 1})")
        else:
            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    log.error(f"Malformed JSON from {url}: {e}")
                    raise UpstreamUnavailable("Malformed response from weather service") from e
            if response.status_code == 401:
                log.error("Invalid API key")
                raise UpstreamUnavailable("Weather service rejected the API key")
            if response.status_code == 404:
                raise LookupFailure("Weather data not found for the requested location")
            if response.status_code == 429:
                log.warning(f"Rate limited (attempt {attempt + 1})")
            else:
                log.warning(f"HTTP {response.status_code}: {response.text[:100]}")

        if attempt < max_retries - 1:
            time.sleep(exponential_backoff(attempt))

    log.error(f"All {max_retries} attempts failed for {url}")
    raise UpstreamUnavailable("Weather service unavailable")


# ═══════════════════════════════════════════════════════════════════════════════
# OPENWEATHERMAP PARSING
# ═══════════════════════════════════════════════════════════════════════════════

def _precip(block: Dict, key: str) -> float:
    rain = block.get("rain") or {}
    snow = block.get("snow") or {}
    return float((rain.get(key) or 0) + (snow.get(key) or 0))


def _weather_code(block: Dict) -> Tuple[int, str]:
    weather = block.get("weather") or [{}]
    return int(weather[0].get("id", 800)), weather[0].get("description", "clear sky")


def local_date(data: Dict) -> date:
    """Local calendar date of a current-weather observation."""
    ts = data.get("dt", 0) + data.get("timezone", 0)
    return datetime.fromtimestamp(ts, tz=timezone.utc).date()


def parse_current(data: Dict) -> WeatherReading:
    """Convert an OpenWeather current-weather payload to a WeatherReading."""
    try:
        main = data["main"]
        code, desc = _weather_code(data)
        visibility = data.get("visibility")
        return WeatherReading(
            temperature=round(float(main["temp"]), 1),
            humidity=float(main["humidity"]),
            wind_speed=float(data.get("wind", {}).get("speed", 0)),
            rainfall=_precip(data, "1h") or _precip(data, "3h"),
            condition=condition_from_code(code).value,
            description=desc,
            pressure=main.get("pressure"),
            visibility=round(visibility / 1000, 1) if visibility is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamUnavailable(f"Malformed current weather payload: {e}") from e


def _most_common(values: pd.Series):
    return values.value_counts().idxmax()


def aggregate_forecast(
    data: Dict,
    today: date,
    current: WeatherReading,
    days: int = 5,
) -> List[ForecastDay]:
    """
    Collapse 3-hourly forecast slots into daily ForecastDay values.

    Temperature and humidity are averaged, rain is summed and the most
    frequent condition wins. The first day is always `today`; when the
    forecast has no slots left for today it is filled from the current reading.
    """
    offset = data.get("city", {}).get("timezone", 0)
    rows = []
    for slot in data.get("list", []):
        try:
            code, desc = _weather_code(slot)
            rows.append({
                "dt": int(slot["dt"]) + offset,
                "temperature": float(slot["main"]["temp"]),
                "humidity": float(slot["main"]["humidity"]),
                "rainfall": _precip(slot, "3h"),
                "condition": condition_from_code(code).value,
                "description": desc,
            })
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"Skipping malformed forecast slot: {e}")

    forecast: List[ForecastDay] = []
    if rows:
        df = pd.DataFrame(rows)
        df["date"] = pd.to_datetime(df["dt"], unit="s", utc=True).dt.date
        df = df[df["date"] >= today]
        daily = df.groupby("date", sort=True).agg(
            temperature=("temperature", "mean"),
            humidity=("humidity", "mean"),
            rainfall=("rainfall", "sum"),
            condition=("condition", _most_common),
            description=("description", _most_common),
        )
        for day, row in daily.iterrows():
            forecast.append(ForecastDay(
                label=day_label((day - today).days),
                date=day,
                temperature=round(float(row["temperature"]), 1),
                humidity=round(float(row["humidity"]), 1),
                rainfall=round(float(row["rainfall"]), 2),
                condition=row["condition"],
                description=row["description"],
            ))

    if not forecast or forecast[0].date != today:
        forecast.insert(0, ForecastDay(
            label=day_label(0),
            date=today,
            temperature=current.temperature,
            humidity=current.humidity,
            rainfall=current.rainfall,
            condition=current.condition,
            description=current.description,
        ))
    return forecast[:days]


# ═══════════════════════════════════════════════════════════════════════════════
# OPENWEATHERMAP FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def geocode(location_query: str, config: WeatherSourceConfig = WEATHER) -> Location:
    """Resolve a place name to coordinates."""
    params = {"q": location_query, "limit": 1, "appid": config.api_key}
    results = request_with_retry(config.geocode_url, params, config.timeout_s, config.max_retries)
    if not results:
        raise LookupFailure(f"Location '{location_query}' not found")
    try:
        top = results[0]
        return Location(
            name=top.get("name", location_query),
            country=top.get("country", ""),
            state=top.get("state", ""),
            lat=float(top["lat"]),
            lon=float(top["lon"]),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        log.error(f"Malformed geocoding payload for '{location_query}': {e!r}")
        raise UpstreamUnavailable("Malformed geocoding response from weather service") from e


def fetch_openweather(location_query: str, config: WeatherSourceConfig = WEATHER) -> WeatherSnapshot:
    """Fetch current weather and a daily forecast from OpenWeather."""
    if not config.api_key:
        log.error("OPENWEATHER_API_KEY not set")
        raise UpstreamUnavailable("Weather API integration is not configured")

    location = geocode(location_query, config)
    params = {"lat": location.lat, "lon": location.lon, "appid": config.api_key, "units": "metric"}

    current_data = request_with_retry(config.current_url, params, config.timeout_s, config.max_retries)
    current = parse_current(current_data)

    forecast_data = request_with_retry(
        config.forecast_url,
        {**params, "cnt": min(config.forecast_days * 8, 40)},
        config.timeout_s,
        config.max_retries,
    )
    forecast = aggregate_forecast(forecast_data, local_date(current_data), current, config.forecast_days)

    log.info(f"Fetched weather for {location.display_name()}: {current.temperature}°C, "
             f"{current.humidity}% RH, {len(forecast)} forecast days")
    return WeatherSnapshot(location=location, current=current, forecast=tuple(forecast))


def fetch_snapshot(
    location_query: str,
    config: WeatherSourceConfig = WEATHER,
    demo: Optional[bool] = None,
) -> WeatherSnapshot:
    """
    Current conditions and forecast for a place name.

    Args:
        location_query: Free-text place name (e.g. "London")
        config: Weather source settings
        demo: Force demo data on/off; defaults to `config.demo_mode`

    Raises:
        LookupFailure: the location is blank or cannot be resolved
        UpstreamUnavailable: the service failed or is not configured
    """
    query = (location_query or "").strip()
    if not query:
        raise LookupFailure("Location must not be empty")

    use_demo = config.demo_mode if demo is None else demo
    if use_demo:
        log.debug(f"Serving demo weather for '{query}'")
        return demo_snapshot(query)
    return fetch_openweather(query, config)


def fetch_current_and_forecast(
    location_query: str,
    config: WeatherSourceConfig = WEATHER,
    demo: Optional[bool] = None,
) -> Tuple[WeatherReading, Sequence[ForecastDay]]:
    snapshot = fetch_snapshot(location_query, config, demo)
    return snapshot.current, snapshot.forecast
