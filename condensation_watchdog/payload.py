from datetime import datetime
from typing import Dict

from condensation_watchdog.condensation import CondensationAssessment, risk_level_for


def build_weather_payload(weather: Dict, assessment: CondensationAssessment) -> Dict:
    """
    JSON response for a match:
      temperature, humidity, windSpeed, cloudCover, condition, icon,
      condensationRisk, riskLevel, dewPoint, riskDescription
    """
    return {
        "temperature": int(round(float(weather["temperature"]))),
        "humidity": int(weather["humidity"]),
        "windSpeed": round(float(weather["wind_speed"]), 1),
        "cloudCover": int(weather["cloud_cover"]),
        "condition": weather.get("condition") or "Unknown",
        "icon": weather.get("icon") or "01d",
        "condensationRisk": assessment.risk,
        "riskLevel": assessment.level,
        "dewPoint": assessment.dew_point,
        "riskDescription": assessment.description,
    }


def payload_from_cache(row: Dict) -> Dict:
    """Same payload from a weather_cache row; the level is re-derived from the stored score."""
    risk = int(row["condensation_risk"])
    return {
        "temperature": int(round(float(row["temperature"]))),
        "humidity": int(row["humidity"]),
        "windSpeed": round(float(row["wind_speed"]), 1),
        "cloudCover": int(row["cloud_cover"]),
        "condition": row.get("weather_condition") or "Unknown",
        "icon": row.get("weather_icon") or "01d",
        "condensationRisk": risk,
        "riskLevel": risk_level_for(risk),
        "dewPoint": float(row["dew_point"]) if row.get("dew_point") is not None else None,
        "riskDescription": row.get("risk_description"),
    }


def cache_row(location_id, forecast_time: datetime, weather: Dict, assessment: CondensationAssessment) -> Dict:
    return {
        "location_id": location_id,
        "forecast_time": forecast_time,
        "temperature": float(weather["temperature"]),
        "humidity": int(weather["humidity"]),
        "wind_speed": float(weather["wind_speed"]),
        "cloud_cover": int(weather["cloud_cover"]),
        "weather_condition": weather.get("condition") or "Unknown",
        "weather_icon": weather.get("icon") or "01d",
        "condensation_risk": assessment.risk,
        "dew_point": assessment.dew_point,
        "glass_temperature": assessment.glass_temperature,
        "risk_description": assessment.description,
    }
