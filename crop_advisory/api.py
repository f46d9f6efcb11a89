"""FastAPI service for crop advisories."""
import logging
from datetime import date as calendar_date
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from . import __version__
from .advisory import evaluate
from .config import API
from .crops import REGISTRY, CropNotFound
from .orchestrator import CropAdvisoryOrchestrator
from .weather import ForecastDay, LookupFailure, UpstreamUnavailable, WeatherReading, fetch_snapshot

logging.basicConfig(level=logging.INFO)
log = logging.getLogger(__name__)

app = FastAPI(
    title="Crop Advisory API",
    description="Weather-driven agronomic recommendations for common crops",
    version=__version__,
)

orchestrator = CropAdvisoryOrchestrator()

# ─────────────────────────────────────────────────────────────────────────────
# MODELS
# ─────────────────────────────────────────────────────────────────────────────

class WeatherInput(BaseModel):
    temperature: float = Field(..., description="Temperature (°C)")
    humidity: float = Field(..., ge=0, le=100, description="Relative humidity (%)")
    wind_speed: float = Field(0.0, ge=0)
    rainfall: float = Field(0.0, ge=0, description="Rain today (mm)")
    condition: str = "sunny"
    description: str = ""
    pressure: Optional[float] = None
    visibility: Optional[float] = None

    def to_reading(self) -> WeatherReading:
        return WeatherReading(**self.model_dump())


class ForecastDayInput(BaseModel):
    label: str = ""
    date: calendar_date
    temperature: float
    humidity: float = Field(..., ge=0, le=100)
    rainfall: float = Field(0.0, ge=0)
    condition: str = "sunny"
    description: str = ""

    def to_day(self) -> ForecastDay:
        return ForecastDay(**self.model_dump())


class AdviseRequest(BaseModel):
    location: str = Field(..., min_length=1, description="Place name")
    crop: str = Field(..., min_length=1, description="Crop key")
    month: Optional[int] = Field(None, ge=1, le=12)


class EvaluateRequest(BaseModel):
    crop: str = Field(..., min_length=1, description="Crop key")
    month: int = Field(..., ge=1, le=12)
    weather: WeatherInput
    forecast: List[ForecastDayInput] = Field(default_factory=list)


class Recommendation(BaseModel):
    severity: str
    category: str
    message: str
    action: str


class EvaluateResponse(BaseModel):
    crop: str
    month: int
    recommendations: List[Recommendation]


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _lookup_crop(key: str):
    try:
        return REGISTRY.lookup(key.strip().lower())
    except CropNotFound as e:
        raise HTTPException(404, str(e))


def _weather_error(e: LookupFailure) -> HTTPException:
    if isinstance(e, UpstreamUnavailable):
        log.error(f"Weather service error: {e}")
        return HTTPException(503, str(e))
    return HTTPException(404, str(e))


# ─────────────────────────────────────────────────────────────────────────────
# ENDPOINTS
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__, "timestamp": _now()}


@app.get("/api/v1/crops")
async def list_crops():
    """List supported crops in registry order."""
    return {"crops": [{"key": key, **profile.to_dict()} for key, profile in REGISTRY.list_all()]}


@app.get("/api/v1/crops/{key}")
async def get_crop(key: str):
    """Profile and display summary for one crop."""
    profile = _lookup_crop(key)
    return {"key": key.lower(), "profile": profile.to_dict(), "summary": profile.summary()}


@app.get("/api/v1/weather")
async def get_weather(location: str = Query(..., min_length=1)):
    """Current conditions and daily forecast for a place name."""
    try:
        snapshot = fetch_snapshot(location)
    except LookupFailure as e:
        raise _weather_error(e)
    return {
        "location": snapshot.location.to_dict(),
        "current": snapshot.current.to_dict(),
        "forecast": [day.to_dict() for day in snapshot.forecast],
        "timestamp": _now(),
    }


@app.post("/api/v1/advise")
async def advise(request: AdviseRequest):
    """Fetch weather for a location and generate advisories for a crop."""
    try:
        result = orchestrator.analyze(request.location, request.crop, request.month)
    except CropNotFound as e:
        raise HTTPException(404, str(e))
    except LookupFailure as e:
        raise _weather_error(e)
    except ValueError as e:
        raise HTTPException(422, str(e))
    return result.to_dict()


@app.post("/api/v1/evaluate", response_model=EvaluateResponse)
async def evaluate_snapshot(request: EvaluateRequest):
    """Generate advisories from caller-supplied weather, without fetching."""
    profile = _lookup_crop(request.crop)
    entries = evaluate(
        request.month,
        request.weather.to_reading(),
        [day.to_day() for day in request.forecast],
        profile,
    )
    return {
        "crop": request.crop.lower(),
        "month": request.month,
        "recommendations": [entry.to_dict() for entry in entries],
    }


# ─────────────────────────────────────────────────────────────────────────────
# RUN SERVER
# ─────────────────────────────────────────────────────────────────────────────

def run_server():
    """Run the API server."""
    import uvicorn
    uvicorn.run(
        "crop_advisory.api:app",
        host=API.host,
        port=API.port,
        workers=API.workers,
    )


if __name__ == "__main__":
    run_server()
