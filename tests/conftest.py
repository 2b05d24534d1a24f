import os
import sys
from datetime import datetime, timezone

import pytest

# Project root on the path so the package imports without installation
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


@pytest.fixture
def settings():
    """Settings as returned by load_settings, with an API key."""
    return {
        "openweathermap_api_key": "test-key",
        "cache_duration_minutes": 60,
        "forecast_horizon_hours": 120,
        "request_timeout_s": 5,
        "reports_dir": "reports",
        "database": {"dbname": "test_db", "user": "u", "password": "p", "host": "localhost", "port": "5432"},
        "venue": None,
    }


@pytest.fixture
def now():
    return datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _entry(dt, temp, humidity, wind, clouds, main="Clear", icon="01n"):
    return {
        "dt": int(dt.timestamp()),
        "main": {"temp": temp, "humidity": humidity},
        "wind": {"speed": wind},
        "clouds": {"all": clouds},
        "weather": [{"main": main, "icon": icon}],
    }


@pytest.fixture
def make_entry():
    return _entry


@pytest.fixture
def forecast_body(now):
    """/forecast body: 3-hour entries from 12:00 UTC, venue at UTC+2."""
    from datetime import timedelta

    entries = [
        # 12:00 UTC = 14 local, daytime
        _entry(now, 20.0, 50, 3.0, 80, "Clouds", "04d"),
        # 15:00 UTC = 17 local
        _entry(now + timedelta(hours=3), 18.0, 60, 2.0, 50, "Clouds", "03d"),
        # next day 03:00 UTC = 05 local, clear and calm
        _entry(now + timedelta(hours=15), 15.0, 95, 0.5, 5),
        # 06:00 UTC = 08 local, clear and calm
        _entry(now + timedelta(hours=18), 15.0, 95, 0.5, 5),
        # 09:00 UTC = 11 local, daytime
        _entry(now + timedelta(hours=21), 22.0, 40, 4.0, 20, "Clear", "01d"),
    ]
    return {"list": entries, "city": {"name": "Test", "timezone": 7200}}
