from datetime import datetime, timedelta, timezone

FORECAST_STEP_HOURS = 3


def as_utc(ts: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def forecast_bucket(match_time: datetime) -> datetime:
    """
    Round a match time to the nearest forecast step (3 h), on the hour.
    Halfway points round up; 22:30 rolls over to 00:00 the next day.
    """
    ts = as_utc(match_time)
    midnight = ts.replace(hour=0, minute=0, second=0, microsecond=0)
    hours = (ts - midnight).total_seconds() / 3600
    steps = int(hours / FORECAST_STEP_HOURS + 0.5)
    return midnight + timedelta(hours=steps * FORECAST_STEP_HOURS)


def hours_until(match_time: datetime, now: datetime) -> float:
    return (as_utc(match_time) - as_utc(now)).total_seconds() / 3600


def local_hour(ts_utc: datetime, utc_offset_s: int) -> int:
    """Hour of day at the venue, given the provider's UTC offset in seconds."""
    return (as_utc(ts_utc) + timedelta(seconds=int(utc_offset_s or 0))).hour
