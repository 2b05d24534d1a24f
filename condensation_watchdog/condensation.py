"""Condensation risk model for glass court walls.

Turns a single weather observation into a risk score for wet, slippery glass:
dew point from the Magnus formula, an estimate of how far radiative cooling
pulls the glass below air temperature, and an exponential decay of risk over
the margin between the two.
"""

import math
import numbers
from dataclasses import dataclass, asdict
from typing import Dict, Tuple

# Magnus coefficients (°C)
MAGNUS_B = 17.625
MAGNUS_C = 243.04

MAX_RADIATIVE_COOLING_C = 10.0
WIND_CUTOFF_MPS = 5.0
SAFE_MARGIN_C = 8.0
HUMIDITY_AMPLIFIER_THRESHOLD = 90
HUMIDITY_AMPLIFIER = 1.15
# Floor for humidity so ln(humidity / 100) stays finite
MIN_HUMIDITY = 1e-6

LOW, MEDIUM, HIGH = "low", "medium", "high"


# ----------------------------- Time-of-day table -----------------------------
_EARLY_MORNING = (1.0, "early morning")
_NIGHT = (0.85, "night")
_EVENING = (0.6, "evening")
_MORNING = (0.5, "morning")
_LATE_AFTERNOON = (0.3, "late afternoon")
_DAYTIME = (0.0, "daytime")

# Indexed by hour of day, 0..23
TIME_FACTORS: Tuple[Tuple[float, str], ...] = (
    _NIGHT, _NIGHT, _NIGHT, _NIGHT,                          # 00-03
    _EARLY_MORNING, _EARLY_MORNING, _EARLY_MORNING, _EARLY_MORNING,  # 04-07
    _MORNING, _MORNING, _MORNING,                            # 08-10
    _DAYTIME, _DAYTIME, _DAYTIME, _DAYTIME, _DAYTIME,        # 11-15
    _LATE_AFTERNOON, _LATE_AFTERNOON,                        # 16-17
    _EVENING, _EVENING,                                      # 18-19
    _NIGHT, _NIGHT, _NIGHT, _NIGHT,                          # 20-23
)


@dataclass(frozen=True)
class WeatherObservation:
    """Weather at the court for the hour a match is played."""
    temperature: float   # °C
    humidity: float      # relative humidity, %
    wind_speed: float    # m/s
    cloud_cover: float   # %
    hour: int            # local hour of day, 0..23


@dataclass(frozen=True)
class RiskBreakdown:
    """Unrounded intermediate quantities of one estimate."""
    dew_point: float
    cloud_factor: float
    wind_factor: float
    time_factor: float
    time_label: str
    cooling_amount: float
    glass_temperature: float
    margin: float
    raw_risk: float
    amplified: bool


@dataclass(frozen=True)
class CondensationAssessment:
    risk: int
    level: str
    dew_point: float
    glass_temperature: float
    description: str
    breakdown: RiskBreakdown

    def to_dict(self) -> Dict:
        return asdict(self)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _require_finite(name: str, value) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {value}")
    return value


def dew_point_c(temperature: float, humidity: float) -> float:
    """
    Dew point via the Magnus formula.

    Args:
        temperature (float): Air temperature in °C
        humidity (float): Relative humidity in percent, 0 < humidity <= 100

    Returns:
        float: Dew point in °C
    """
    alpha = math.log(humidity / 100.0) + MAGNUS_B * temperature / (MAGNUS_C + temperature)
    return MAGNUS_C * alpha / (MAGNUS_B - alpha)


def time_factor_for_hour(hour: int) -> Tuple[float, str]:
    """Radiative cooling weight and context label for a local hour (0..23)."""
    if isinstance(hour, bool) or not isinstance(hour, numbers.Integral):
        raise ValueError(f"hour must be an integer between 0 and 23, got {hour!r}")
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be between 0 and 23, got {hour}")
    return TIME_FACTORS[int(hour)]


def cloud_factor_for(cloud_cover: float) -> float:
    # Non-linear: partial cloud already suppresses most of the cooling
    return (1.0 - cloud_cover / 100.0) ** 1.5


def wind_factor_for(wind_speed: float) -> float:
    return max(0.0, 1.0 - wind_speed / WIND_CUTOFF_MPS)


def risk_from_margin(margin: float) -> float:
    """
    Risk score (0..100) for the margin between glass temperature and dew point.
    Non-increasing in margin: 100 at or below zero, 0 from SAFE_MARGIN_C up.
    """
    if margin <= 0:
        return 100.0
    if margin >= SAFE_MARGIN_C:
        return 0.0
    return 100.0 * math.exp(-margin / 2.0)


def risk_level_for(risk: float) -> str:
    if risk < 30:
        return LOW
    if risk < 60:
        return MEDIUM
    return HIGH


def describe_risk(level: str, time_label: str, wind_speed: float, cloud_cover: float) -> str:
    """Pick the user-facing guidance for a risk tier and its surrounding conditions."""
    if level == HIGH:
        if time_label == "early morning":
            return "High condensation risk: glass walls are likely wet in the early morning. Bring a towel."
        if cloud_cover < 20 and wind_speed < 2:
            return "High condensation risk: clear, calm conditions will cool the glass below the dew point."
        return "High condensation risk: glass walls are likely to be slippery."

    if level == MEDIUM:
        if wind_speed >= 3:
            return "Moderate condensation risk, but the breeze should help keep the glass dry."
        if cloud_cover >= 70:
            return "Moderate condensation risk: cloud cover limits cooling of the glass."
        return f"Moderate condensation risk: some moisture possible on the glass in the {time_label}."

    if time_label == "daytime":
        return "Low condensation risk: daytime conditions keep the glass dry."
    if wind_speed >= WIND_CUTOFF_MPS:
        return "Low condensation risk: wind keeps the glass from cooling."
    if cloud_cover >= 80:
        return "Low condensation risk: cloud cover prevents radiative cooling."
    return "Low condensation risk: court conditions should be good."


def estimate_condensation_risk(observation: WeatherObservation) -> CondensationAssessment:
    """
    Estimate the risk of condensation on glass court walls.

    Out-of-range humidity, cloud cover and wind speed are clamped. NaN or
    infinite inputs, a temperature at or below -243.04 °C and an hour
    outside 0..23 raise ValueError.

    Args:
        observation (WeatherObservation): Weather at the court for the match hour

    Returns:
        CondensationAssessment: Rounded score, level, dew point, glass
            temperature and description, plus the unrounded breakdown
    """
    temperature = _require_finite("temperature", observation.temperature)
    if temperature <= -MAGNUS_C:
        raise ValueError(f"temperature must be above {-MAGNUS_C} °C, got {temperature}")
    humidity = _clamp(_require_finite("humidity", observation.humidity), MIN_HUMIDITY, 100.0)
    wind_speed = max(0.0, _require_finite("wind_speed", observation.wind_speed))
    cloud_cover = _clamp(_require_finite("cloud_cover", observation.cloud_cover), 0.0, 100.0)
    time_factor, time_label = time_factor_for_hour(observation.hour)

    dew_point = dew_point_c(temperature, humidity)
    cloud_factor = cloud_factor_for(cloud_cover)
    wind_factor = wind_factor_for(wind_speed)

    cooling_amount = MAX_RADIATIVE_COOLING_C * cloud_factor * wind_factor * time_factor
    glass_temperature = temperature - cooling_amount
    margin = glass_temperature - dew_point

    raw_risk = risk_from_margin(margin)
    risk = raw_risk
    amplified = humidity > HUMIDITY_AMPLIFIER_THRESHOLD
    if amplified:
        risk = min(100.0, risk * HUMIDITY_AMPLIFIER)

    score = int(_clamp(_round_half_up(risk), 0, 100))
    level = risk_level_for(score)

    breakdown = RiskBreakdown(
        dew_point=dew_point,
        cloud_factor=cloud_factor,
        wind_factor=wind_factor,
        time_factor=time_factor,
        time_label=time_label,
        cooling_amount=cooling_amount,
        glass_temperature=glass_temperature,
        margin=margin,
        raw_risk=raw_risk,
        amplified=amplified,
    )
    return CondensationAssessment(
        risk=score,
        level=level,
        dew_point=round(dew_point, 1),
        glass_temperature=round(glass_temperature, 1),
        description=describe_risk(level, time_label, wind_speed, cloud_cover),
        breakdown=breakdown,
    )
