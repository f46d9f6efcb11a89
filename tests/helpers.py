"""Builders for weather inputs used across the test suite."""
from datetime import date, timedelta

from crop_advisory.weather import ForecastDay, WeatherReading, day_label

TODAY = date(2025, 5, 23)


def make_reading(temperature=24, humidity=65, rainfall=2.5):
    return WeatherReading(
        temperature=temperature,
        humidity=humidity,
        wind_speed=12,
        rainfall=rainfall,
        condition="partly-cloudy",
        description="partly cloudy",
    )


def make_forecast(rainfall):
    """Forecast with one day per rainfall value, starting today."""
    return [
        ForecastDay(
            label=day_label(i),
            date=TODAY + timedelta(days=i),
            temperature=24,
            humidity=65,
            rainfall=rain,
            condition="rain" if rain else "sunny",
            description="rain" if rain else "clear sky",
        )
        for i, rain in enumerate(rainfall)
    ]
