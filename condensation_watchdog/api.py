import os
from functools import lru_cache
from typing import Dict

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from condensation_watchdog import sql_io
from condensation_watchdog.condensation import WeatherObservation, estimate_condensation_risk
from condensation_watchdog.config import ConfigError, default_settings_path, load_settings
from condensation_watchdog.risk_analysis import analyze_match_weather
from condensation_watchdog.weather import WeatherError

router = APIRouter()


@lru_cache(maxsize=1)
def get_settings() -> Dict:
    """Settings file when present, defaults plus environment otherwise."""
    path = default_settings_path()
    settings, code = load_settings(path if os.path.exists(path) else None)
    if code != ConfigError.SUCCESS:
        raise ConfigError(f"Failed to load settings from {path}", code)
    sql_io.configure(settings)
    return settings


@router.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/api/weather/{match_id}")
def match_weather(match_id: str):
    """Weather and condensation risk for a match."""
    try:
        return analyze_match_weather(match_id.strip(), get_settings())
    except WeatherError as e:
        return JSONResponse(e.to_dict(), status_code=e.status)
    except Exception as e:
        print(f"Weather API error: {e}")
        return JSONResponse({"error": "Internal server error"}, status_code=500)


@router.get("/api/condensation")
def condensation(
    temperature: float,
    humidity: float,
    wind_speed: float = Query(0.0, alias="windSpeed"),
    cloud_cover: float = Query(0.0, alias="cloudCover"),
    hour: int = Query(..., ge=0, le=23),
) -> Dict:
    """Condensation risk for raw weather values, with the intermediate quantities."""
    try:
        assessment = estimate_condensation_risk(
            WeatherObservation(temperature, humidity, wind_speed, cloud_cover, hour)
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return {
        "condensationRisk": assessment.risk,
        "riskLevel": assessment.level,
        "dewPoint": assessment.dew_point,
        "glassTemperature": assessment.glass_temperature,
        "riskDescription": assessment.description,
        "breakdown": assessment.to_dict()["breakdown"],
    }


app = FastAPI(title="Condensation Watchdog")
app.include_router(router)
