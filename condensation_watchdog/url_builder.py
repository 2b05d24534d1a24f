"""URL builder module for the OpenWeatherMap API."""

OPENWEATHERMAP_BASE = "https://api.openweathermap.org/data/2.5"


def build_current_weather_url(lat: float, lon: float, api_key: str) -> str:
    """
    Build an OpenWeatherMap current-weather URL in metric units
    (temperature in °C, wind speed in m/s).
    """
    return (
        f"{OPENWEATHERMAP_BASE}/weather"
        f"?lat={lat}&lon={lon}"
        "&units=metric"
        f"&appid={api_key}"
    )


def build_forecast_url(lat: float, lon: float, api_key: str) -> str:
    """
    Build an OpenWeatherMap 5-day / 3-hour forecast URL in metric units.

    Args:
        lat (float): Latitude of the venue
        lon (float): Longitude of the venue
        api_key (str): OpenWeatherMap API key

    Returns:
        str: The complete forecast URL
    """
    return (
        f"{OPENWEATHERMAP_BASE}/forecast"
        f"?lat={lat}&lon={lon}"
        "&units=metric"
        f"&appid={api_key}"
    )
