# sql_io.py
from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import psycopg2
import psycopg2.extras as extras

# ---------------------------------------------------------------------
# Connection settings & helpers
# ---------------------------------------------------------------------

# PostgreSQL connection parameters (overridden by configure())
DB_PARAMS = {
    "dbname": "postgres",
    "user": "postgres",
    "password": "",
    "host": "localhost",
    "port": "5432",
}
DATABASE_URL: Optional[str] = None


def configure(settings: Dict) -> None:
    """Point the module at the database named in the settings dict."""
    global DATABASE_URL
    DB_PARAMS.update(settings.get("database") or {})
    DATABASE_URL = settings.get("database_url")


def _dsn() -> str:
    if DATABASE_URL:
        return DATABASE_URL
    return " ".join(f"{k}={v}" for k, v in DB_PARAMS.items() if v not in (None, ""))


@contextmanager
def get_conn(autocommit: bool = True):
    """
    Context manager that yields a psycopg2 connection.
    Raises RuntimeError if the connection cannot be opened.
    """
    conn = None
    try:
        try:
            conn = psycopg2.connect(_dsn())
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to connect to database: {str(e).strip()}")

        conn.autocommit = autocommit
        with conn.cursor() as cur:
            cur.execute("SET search_path TO public")
        yield conn

    finally:
        if conn is not None:
            conn.close()

# ---------------------------------------------------------------------
# Schema bootstrap (safe to run multiple times)
# ---------------------------------------------------------------------
SCHEMA_DDL = """
CREATE TABLE IF NOT EXISTS public.weather_cache (
  location_id UUID NOT NULL,
  forecast_time TIMESTAMPTZ NOT NULL,
  temperature NUMERIC,
  humidity INT,
  wind_speed NUMERIC,
  cloud_cover INT,
  weather_condition TEXT,
  weather_icon TEXT,
  condensation_risk INT NOT NULL,
  dew_point NUMERIC,
  glass_temperature NUMERIC,
  risk_description TEXT,
  fetched_at TIMESTAMPTZ NOT NULL DEFAULT now(),
  PRIMARY KEY (location_id, forecast_time)
);
"""

def ensure_schema() -> None:
    """Create the weather cache table if it doesn't exist."""
    with get_conn() as conn, conn.cursor() as cur:
        cur.execute(SCHEMA_DDL)

# ---------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------
def fetch_match(match_id: str) -> Optional[Dict]:
    """Return {'location', 'date_time'} for a match, or None."""
    sql = "SELECT location, date_time FROM public.matches WHERE id = %s"
    with get_conn() as conn, conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
        try:
            cur.execute(sql, (match_id,))
        except psycopg2.DataError:
            # Not a valid UUID
            return None
        row = cur.fetchone()
    return dict(row) if row else None


def fetch_location(name: str) -> Optional[Dict]:
    """Return {'id', 'name', 'latitude', 'longitude'} for a venue name, or None."""
    sql = "SELECT id, name, latitude, longitude FROM public.locations WHERE name = %s"
    with get_conn() as conn, conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
        cur.execute(sql, (name,))
        row = cur.fetchone()
    return dict(row) if row else None


def fetch_cached_weather(location_id, forecast_time: datetime, max_age_minutes: float) -> Optional[Dict]:
    """Cache row for (location, forecast bucket) fetched within max_age_minutes, or None."""
    sql = """
    SELECT * FROM public.weather_cache
    WHERE location_id = %s AND forecast_time = %s AND fetched_at >= %s
    """
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=max_age_minutes)
    with get_conn() as conn, conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
        cur.execute(sql, (str(location_id), forecast_time, cutoff))
        row = cur.fetchone()
    return dict(row) if row else None

# ---------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------
def upsert_weather_cache(row: Dict) -> None:
    """
    Upsert one cache row. Keys must match the weather_cache columns
    (fetched_at is set to now()).
    """
    cols = [
        "location_id", "forecast_time", "temperature", "humidity", "wind_speed",
        "cloud_cover", "weather_condition", "weather_icon", "condensation_risk",
        "dew_point", "glass_temperature", "risk_description",
    ]
    updates = ",\n      ".join(f"{c} = EXCLUDED.{c}" for c in cols[2:])
    sql = f"""
    INSERT INTO public.weather_cache ({", ".join(cols)})
    VALUES %s
    ON CONFLICT (location_id, forecast_time) DO UPDATE SET
      {updates},
      fetched_at = now();
    """
    values = [tuple(str(row[c]) if c == "location_id" else row.get(c) for c in cols)]
    with get_conn() as conn, conn.cursor() as cur:
        extras.execute_values(cur, sql, values)
