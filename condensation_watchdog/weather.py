"""Weather module for fetching and processing OpenWeatherMap data."""

from datetime import datetime, timezone
from typing import Dict, Optional

import pandas as pd
import requests

from condensation_watchdog.url_builder import build_current_weather_url, build_forecast_url
from condensation_watchdog.helpers import as_utc, hours_until, local_hour

FORECAST_COLUMNS = [
    "Time",
    "Temperature (°C)",
    "Humidity (%)",
    "Wind Speed (m/s)",
    "Cloud Cover (%)",
    "Condition",
    "Icon",
]


class WeatherError(Exception):
    """Error raised while resolving weather for a match; carries an HTTP status."""
    MATCH_ID_REQUIRED = 1
    MATCH_NOT_FOUND = 2
    LOCATION_NOT_FOUND = 3
    MISSING_COORDINATES = 4
    NOT_CONFIGURED = 5
    FORECAST_UNAVAILABLE = 6
    UPSTREAM_FAILURE = 7

    STATUS = {
        MATCH_ID_REQUIRED: 400,
        MATCH_NOT_FOUND: 404,
        LOCATION_NOT_FOUND: 404,
        MISSING_COORDINATES: 404,
        NOT_CONFIGURED: 503,
        FORECAST_UNAVAILABLE: 404,
        UPSTREAM_FAILURE: 503,
    }

    def __init__(self, error: str, code: int, message: Optional[str] = None):
        super().__init__(message or error)
        self.error = error
        self.code = code
        self.message = message
        self.status = self.STATUS.get(code, 500)

    def to_dict(self) -> Dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


def _get_json(url: str, timeout: float, what: str) -> Dict:
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except (requests.RequestException, ValueError) as e:
        print(f"ERROR: {what} request failed: {e}")
        raise WeatherError(f"Failed to fetch {what}", WeatherError.UPSTREAM_FAILURE) from e


def _first_condition(entry: Dict) -> Dict:
    weather = entry.get("weather") or [{}]
    return weather[0] or {}


def fetch_current_weather(lat: float, lon: float, api_key: str, timeout: float = 20) -> Dict:
    """
    Fetch current conditions for a venue.

    Returns:
        dict with temperature, humidity, wind_speed, cloud_cover, condition,
        icon, time (UTC) and utc_offset_s
    """
    data = _get_json(build_current_weather_url(lat, lon, api_key), timeout, "weather data")
    try:
        cond = _first_condition(data)
        return {
            "temperature": float(data["main"]["temp"]),
            "humidity": data["main"]["humidity"],
            "wind_speed": float(data["wind"]["speed"]),
            "cloud_cover": data["clouds"]["all"],
            "condition": cond.get("main") or "Unknown",
            "icon": cond.get("icon") or "01d",
            "time": datetime.fromtimestamp(int(data["dt"]), tz=timezone.utc),
            "utc_offset_s": int(data.get("timezone") or 0),
        }
    except (KeyError, TypeError, ValueError) as e:
        print(f"ERROR: Missing key in current weather response: {e}")
        raise WeatherError("Failed to fetch weather data", WeatherError.UPSTREAM_FAILURE) from e


def forecast_to_frame(data: Dict) -> pd.DataFrame:
    """
    Turn a /forecast response body into a DataFrame (one row per 3-hour entry).
    Adds 'Local Time' (naive) and 'Local Hour' using the city's UTC offset.
    """
    entries = data.get("list") or []
    offset = int((data.get("city") or {}).get("timezone") or 0)

    rows = []
    for entry in entries:
        cond = _first_condition(entry)
        rows.append({
            "Time": pd.to_datetime(int(entry["dt"]), unit="s", utc=True),
            "Temperature (°C)": float(entry["main"]["temp"]),
            "Humidity (%)": entry["main"]["humidity"],
            "Wind Speed (m/s)": float(entry["wind"]["speed"]),
            "Cloud Cover (%)": entry["clouds"]["all"],
            "Condition": cond.get("main") or "Unknown",
            "Icon": cond.get("icon") or "01d",
        })

    if not rows:
        return pd.DataFrame(columns=FORECAST_COLUMNS + ["Local Time", "Local Hour"])

    df = pd.DataFrame(rows, columns=FORECAST_COLUMNS)
    df["Local Time"] = (df["Time"] + pd.to_timedelta(offset, unit="s")).dt.tz_localize(None)
    df["Local Hour"] = df["Local Time"].dt.hour
    return df


def _forecast_frame_or_raise(data: Dict) -> pd.DataFrame:
    try:
        df = forecast_to_frame(data)
    except (KeyError, TypeError, ValueError) as e:
        print(f"ERROR: Missing key in forecast response: {e}")
        raise WeatherError("Failed to fetch forecast data", WeatherError.UPSTREAM_FAILURE) from e
    if df.empty:
        print("ERROR: Forecast response contained no entries")
        raise WeatherError("Failed to fetch forecast data", WeatherError.UPSTREAM_FAILURE)
    return df


def fetch_forecast(lat: float, lon: float, api_key: str, timeout: float = 20) -> pd.DataFrame:
    """Fetch the 5-day / 3-hour forecast for a venue as a DataFrame."""
    data = _get_json(build_forecast_url(lat, lon, api_key), timeout, "forecast data")
    return _forecast_frame_or_raise(data)


def pick_closest_entry(df: pd.DataFrame, target: datetime) -> pd.Series:
    """Row of the forecast whose time is closest to target."""
    target_ts = pd.Timestamp(as_utc(target))
    idx = (df["Time"] - target_ts).abs().idxmin()
    return df.loc[idx]


def get_match_weather(
    lat: float,
    lon: float,
    match_time: datetime,
    api_key: str,
    now: Optional[datetime] = None,
    horizon_hours: float = 120,
    timeout: float = 20,
    venue: str = "",
) -> Dict:
    """
    Weather for a match: current conditions when the match has started,
    the closest forecast entry when it is within the horizon.

    Args:
        lat (float): Latitude of the venue
        lon (float): Longitude of the venue
        match_time (datetime): Scheduled start (naive values are UTC)
        api_key (str): OpenWeatherMap API key
        now (datetime): Reference time, defaults to the current UTC time
        horizon_hours (float): Forecast horizon of the provider
        timeout (float): Per-request timeout in seconds
        venue (str): Name used in log lines

    Returns:
        dict: temperature, humidity, wind_speed, cloud_cover, condition, icon,
            time (UTC of the observation) and local_hour of the match

    Raises:
        WeatherError: FORECAST_UNAVAILABLE beyond the horizon, UPSTREAM_FAILURE
            when the provider fails
    """
    now = now or datetime.now(timezone.utc)
    ahead = hours_until(match_time, now)

    if ahead <= 0:
        print(f"[{venue}] Match has started; using current weather")
        record = fetch_current_weather(lat, lon, api_key, timeout=timeout)
    elif ahead <= horizon_hours:
        print(f"[{venue}] Match in {ahead:.1f}h; using closest forecast entry")
        data = _get_json(build_forecast_url(lat, lon, api_key), timeout, "forecast data")
        df = _forecast_frame_or_raise(data)
        row = pick_closest_entry(df, match_time)
        record = {
            "temperature": float(row["Temperature (°C)"]),
            "humidity": row["Humidity (%)"],
            "wind_speed": float(row["Wind Speed (m/s)"]),
            "cloud_cover": row["Cloud Cover (%)"],
            "condition": row["Condition"],
            "icon": row["Icon"],
            "time": row["Time"].to_pydatetime(),
            "utc_offset_s": int((data.get("city") or {}).get("timezone") or 0),
        }
    else:
        print(f"[{venue}] Match in {ahead:.1f}h is beyond the {horizon_hours}h forecast horizon")
        raise WeatherError(
            "Forecast not available yet",
            WeatherError.FORECAST_UNAVAILABLE,
            "Weather forecast is only available for matches within 5 days",
        )

    record["humidity"] = int(record["humidity"])
    record["cloud_cover"] = int(record["cloud_cover"])
    record["local_hour"] = local_hour(match_time, record.pop("utc_offset_s"))
    return record
