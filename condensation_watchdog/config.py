import json
import os
from typing import Tuple, Dict, Optional

# Error codes and custom exception
class ConfigError(Exception):
    """Custom exception class for configuration errors"""
    SUCCESS = 0
    FILE_NOT_FOUND = 1
    INVALID_JSON = 2
    INVALID_UNITS = 3
    INVALID_VALUE = 4
    GENERAL_ERROR = 5

    def __init__(self, message: str, code: int):
        super().__init__(message)
        self.code = code


SETTINGS_ENV_VAR = "CONDENSATION_WATCHDOG_SETTINGS"
DEFAULT_SETTINGS_FILE = "Settings.json"

DEFAULT_SETTINGS = {
    "openweathermap_api_key": None,
    "cache_duration_minutes": 60,
    "forecast_horizon_hours": 120,
    "request_timeout_s": 20,
    "reports_dir": "reports",
    "database": {
        "dbname": "postgres",
        "user": "postgres",
        "password": "",
        "host": "localhost",
        "port": "5432",
    },
    "venue": None,
}


def to_si_observation(values: dict, units: str) -> dict:
    """
    Convert raw observation values to SI units based on the 'units' argument.

    Args:
        values (dict): Dictionary containing:
            - temperature: °C for "SI", °F for "US"
            - wind_speed: m/s for "SI", mph for "US"
            - humidity, cloud_cover: percentages (unit-free)
        units (str): "US" or "SI"

    Returns:
        dict: Same keys with temperature in °C and wind_speed in m/s

    Raises:
        ValueError: If units is neither "US" nor "SI"
    """
    units = (units or "").upper()
    if units not in ("US", "SI"):
        raise ValueError(
            f"The 'units' field must be either 'US' or 'SI', but got: {units}"
        )

    out = dict(values)
    if units == "SI":
        return out

    out["temperature"] = (float(values["temperature"]) - 32.0) * 5.0 / 9.0  # °F to °C
    out["wind_speed"] = float(values["wind_speed"]) / 2.2369362921          # mph to m/s
    return out


def _apply_env_overrides(settings: dict) -> dict:
    api_key = os.environ.get("OPENWEATHERMAP_API_KEY")
    if api_key:
        settings["openweathermap_api_key"] = api_key
    dsn = os.environ.get("DATABASE_URL")
    if dsn:
        settings["database_url"] = dsn
    return settings


def _validate(settings: dict) -> None:
    for key in ("cache_duration_minutes", "forecast_horizon_hours", "request_timeout_s"):
        try:
            value = float(settings[key])
        except (TypeError, ValueError):
            raise ConfigError(f"'{key}' must be a number, got: {settings[key]!r}", ConfigError.INVALID_VALUE)
        if value <= 0:
            raise ConfigError(f"'{key}' must be positive, got: {value}", ConfigError.INVALID_VALUE)

    venue = settings.get("venue")
    if venue is not None:
        try:
            lat, lon = float(venue["lat"]), float(venue["lon"])
        except (KeyError, TypeError, ValueError):
            raise ConfigError("'venue' needs numeric 'lat' and 'lon'", ConfigError.INVALID_VALUE)
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            raise ConfigError(f"'venue' coordinates out of range: {lat}, {lon}", ConfigError.INVALID_VALUE)


def default_settings_path() -> str:
    return os.environ.get(SETTINGS_ENV_VAR) or os.path.join(os.getcwd(), DEFAULT_SETTINGS_FILE)


def load_settings(file_path: Optional[str] = None) -> Tuple[Optional[Dict], int]:
    """
    Load Settings.json, merge it over the defaults and apply environment overrides.

    Args:
        file_path (str): Path to the settings file. When None, the defaults
            (plus environment overrides) are returned without reading a file.

    Returns:
        Tuple containing:
        - settings: merged settings dict, or None on error
        - error_code: int indicating success (0) or specific error conditions
            - 0: Success
            - 1: File not found
            - 2: Invalid JSON
            - 4: Invalid value
            - 5: General error
    """
    settings = json.loads(json.dumps(DEFAULT_SETTINGS))

    if file_path is None:
        return _apply_env_overrides(settings), ConfigError.SUCCESS

    # --- 1) Read JSON file into a Python dict ---
    try:
        with open(file_path, "r") as f:
            cfg = json.load(f)
    except FileNotFoundError:
        print(f"ERROR: Settings file not found: {file_path}")
        return None, ConfigError.FILE_NOT_FOUND
    except json.JSONDecodeError as e:
        print(f"ERROR: Invalid JSON format in {file_path}: {e}")
        return None, ConfigError.INVALID_JSON

    if not isinstance(cfg, dict):
        print(f"ERROR: Settings file must contain a JSON object: {file_path}")
        return None, ConfigError.INVALID_JSON

    # --- 2) Merge over defaults (database is merged key by key) ---
    try:
        database = {**settings["database"], **(cfg.pop("database", None) or {})}
        settings.update(cfg)
        settings["database"] = database
        settings = _apply_env_overrides(settings)
        _validate(settings)
    except ConfigError as e:
        print(f"\nERROR: Invalid settings in '{file_path}':")
        print(f"  {str(e)}")
        return None, e.code
    except Exception as e:
        print(f"\nERROR: Failed to process settings: {str(e)}")
        return None, ConfigError.GENERAL_ERROR

    print(f"\nSettings loaded from {file_path}   "
          f"Horizon: {settings['forecast_horizon_hours']}h   Cache: {settings['cache_duration_minutes']}min")
    return settings, ConfigError.SUCCESS
