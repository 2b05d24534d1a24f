"""
Condensation Watchdog Package
Condensation risk on glass padel court walls from temperature, humidity, wind, cloud cover and time of day.
"""

from .condensation import (
    WeatherObservation,
    CondensationAssessment,
    RiskBreakdown,
    estimate_condensation_risk,
)
from .config import load_settings
from .weather import get_match_weather, WeatherError
from .risk_analysis import (
    analyze_match_weather,
    analyze_forecast_risk,
    print_risk_preview
)

__all__ = [
    'WeatherObservation',
    'CondensationAssessment',
    'RiskBreakdown',
    'estimate_condensation_risk',
    'load_settings',
    'get_match_weather',
    'WeatherError',
    'analyze_match_weather',
    'analyze_forecast_risk',
    'print_risk_preview'
]
