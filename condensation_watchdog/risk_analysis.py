"""
Condensation Watchdog analysis
- Resolves a match to its venue and scheduled time (analyze_match_weather)
- Gets weather for that time, estimates condensation risk on the glass walls
- Reads/writes the per-(venue, 3h bucket) weather cache
- Forecast mode: per-entry risk over the 5-day forecast, grouped into risk
  windows, optional Excel export
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

import pandas as pd
import psycopg2

from condensation_watchdog import sql_io
from condensation_watchdog.condensation import (
    LOW,
    WeatherObservation,
    estimate_condensation_risk,
    risk_level_for,
)
from condensation_watchdog.helpers import FORECAST_STEP_HOURS, as_utc, forecast_bucket
from condensation_watchdog.payload import build_weather_payload, cache_row, payload_from_cache
from condensation_watchdog.weather import WeatherError, fetch_forecast, get_match_weather

SUMMARY_COLUMNS = [
    "venue", "start_time", "end_time", "duration_h",
    "peak_risk", "peak_level", "min_margin_c", "max_humidity_pct",
]


# ============================================================================
# 1) Match weather (one match → one payload)
# ============================================================================

def _to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


def _print_breakdown(venue: str, assessment) -> None:
    b = assessment.breakdown
    print(
        f"[{venue}] dew point {b.dew_point:.2f}°C, cloud {b.cloud_factor:.2f}, "
        f"wind {b.wind_factor:.2f}, time {b.time_factor:.2f} ({b.time_label}), "
        f"cooling {b.cooling_amount:.2f}°C, glass {b.glass_temperature:.2f}°C, "
        f"margin {b.margin:.2f}°C → risk {assessment.risk} ({assessment.level})"
    )


def analyze_match_weather(match_id: str, settings: Dict, now: Optional[datetime] = None) -> Dict:
    """
    Weather and condensation risk for a match.

    Args:
        match_id (str): Match identifier
        settings (dict): Loaded settings (see config.load_settings)
        now (datetime): Reference time, defaults to the current UTC time

    Returns:
        dict: JSON payload (temperature, humidity, windSpeed, cloudCover,
            condition, icon, condensationRisk, riskLevel, dewPoint, riskDescription)

    Raises:
        WeatherError: for a missing match/location/coordinates, an unconfigured
            API key, a match beyond the forecast horizon or a provider failure
    """
    if not match_id:
        raise WeatherError("Match ID is required", WeatherError.MATCH_ID_REQUIRED)

    match = sql_io.fetch_match(match_id)
    if not match:
        raise WeatherError("Match not found", WeatherError.MATCH_NOT_FOUND)

    location = sql_io.fetch_location(match["location"])
    if not location:
        raise WeatherError(
            "Location not found",
            WeatherError.LOCATION_NOT_FOUND,
            "Weather data unavailable for this location",
        )
    if location.get("latitude") is None or location.get("longitude") is None:
        raise WeatherError("Location coordinates not available", WeatherError.MISSING_COORDINATES)

    venue = location.get("name") or match["location"]
    match_time = _to_datetime(match["date_time"])
    bucket = forecast_bucket(match_time)

    cached = sql_io.fetch_cached_weather(location["id"], bucket, settings["cache_duration_minutes"])
    if cached:
        print(f"[{venue}] Cache hit for {bucket.isoformat()}")
        return payload_from_cache(cached)

    api_key = settings.get("openweathermap_api_key")
    if not api_key:
        raise WeatherError("Weather API not configured", WeatherError.NOT_CONFIGURED)

    weather = get_match_weather(
        float(location["latitude"]),
        float(location["longitude"]),
        match_time,
        api_key,
        now=now,
        horizon_hours=settings["forecast_horizon_hours"],
        timeout=settings["request_timeout_s"],
        venue=venue,
    )

    assessment = estimate_condensation_risk(WeatherObservation(
        temperature=weather["temperature"],
        humidity=weather["humidity"],
        wind_speed=weather["wind_speed"],
        cloud_cover=weather["cloud_cover"],
        hour=weather["local_hour"],
    ))
    _print_breakdown(venue, assessment)

    try:
        sql_io.upsert_weather_cache(cache_row(location["id"], bucket, weather, assessment))
    except (RuntimeError, psycopg2.Error) as e:
        # The payload is still valid without a cache entry
        print(f"[{venue}] WARNING: Failed to write weather cache: {e}")

    return build_weather_payload(weather, assessment)


# ============================================================================
# 2) Forecast risk (one venue → every forecast entry)
# ============================================================================

def attach_condensation_risk(forecast_df: pd.DataFrame, venue: str) -> pd.DataFrame:
    """
    Add condensation risk columns to a forecast frame.
    Requires columns: Time, Temperature (°C), Humidity (%), Wind Speed (m/s),
    Cloud Cover (%), Local Hour
    """
    assessments = [
        estimate_condensation_risk(WeatherObservation(
            temperature=float(r["Temperature (°C)"]),
            humidity=float(r["Humidity (%)"]),
            wind_speed=float(r["Wind Speed (m/s)"]),
            cloud_cover=float(r["Cloud Cover (%)"]),
            hour=int(r["Local Hour"]),
        ))
        for _, r in forecast_df.iterrows()
    ]

    out = forecast_df.assign(venue=venue)
    out["Dew Point (°C)"] = [a.dew_point for a in assessments]
    out["Glass Temp (°C)"] = [a.glass_temperature for a in assessments]
    out["Margin (°C)"] = [round(a.breakdown.margin, 1) for a in assessments]
    out["Condensation Risk"] = [a.risk for a in assessments]
    out["Risk Level"] = [a.level for a in assessments]
    out["Risk Description"] = [a.description for a in assessments]
    out["any_risk"] = out["Risk Level"] != LOW

    # Toggle-based grouping id (for later windowing)
    out["risk_group"] = (out["any_risk"] != out["any_risk"].shift()).cumsum()
    return out


def summarize_risk_windows(flagged: pd.DataFrame) -> pd.DataFrame:
    """
    Group contiguous forecast entries at medium or high risk into windows.
    Each entry covers one forecast step, so a single entry is a 3 h window.
    """
    if flagged is None or flagged.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    risk_only = flagged[flagged["any_risk"]].copy()
    if risk_only.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    summary = (
        risk_only.groupby(["venue", "risk_group"], as_index=False)
        .agg(
            start_time=("Time", "min"),
            end_time=("Time", "max"),
            peak_risk=("Condensation Risk", "max"),
            min_margin_c=("Margin (°C)", "min"),
            max_humidity_pct=("Humidity (%)", "max"),
        )
        .sort_values(["venue", "start_time"])
        .reset_index(drop=True)
    )
    summary["duration_h"] = (
        (summary["end_time"] - summary["start_time"]).dt.total_seconds() // 3600 + FORECAST_STEP_HOURS
    ).astype(int)
    summary["peak_level"] = summary["peak_risk"].apply(risk_level_for)
    return summary[SUMMARY_COLUMNS]


def export_risk_report(flagged: pd.DataFrame, summary: pd.DataFrame, reports_dir: str) -> str:
    """Write 'Detailed Risks' and 'Risk Summary' sheets; returns the .xlsx path."""
    os.makedirs(reports_dir, exist_ok=True)
    xlsx_path = os.path.join(
        reports_dir, f"Condensation_Risk_Report_{datetime.now().strftime('%Y%m%d_%H%M')}.xlsx"
    )

    detailed = flagged.copy()
    detailed["Date"] = detailed["Local Time"].dt.strftime("%Y-%m-%d")
    detailed["Time of Day"] = detailed["Local Time"].dt.strftime("%I:%M %p")
    detailed_cols = {
        "Date": "Date",
        "Time of Day": "Time",
        "venue": "Venue",
        "Temperature (°C)": "Temperature (°C)",
        "Humidity (%)": "Humidity (%)",
        "Wind Speed (m/s)": "Wind Speed (m/s)",
        "Cloud Cover (%)": "Cloud Cover (%)",
        "Condition": "Condition",
        "Dew Point (°C)": "Dew Point (°C)",
        "Glass Temp (°C)": "Glass Temp (°C)",
        "Condensation Risk": "Condensation Risk",
        "Risk Level": "Risk Level",
        "Risk Description": "Risk Description",
    }
    detailed_excel = detailed[list(detailed_cols.keys())].rename(columns=detailed_cols)

    with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
        detailed_excel.to_excel(writer, index=False, sheet_name="Detailed Risks")

        if not summary.empty:
            summary_excel = summary.copy()
            summary_excel["Start (UTC)"] = summary_excel["start_time"].dt.strftime("%Y-%m-%d %H:%M")
            summary_excel["End (UTC)"] = summary_excel["end_time"].dt.strftime("%Y-%m-%d %H:%M")
            summary_cols = {
                "venue": "Venue",
                "Start (UTC)": "Start (UTC)",
                "End (UTC)": "End (UTC)",
                "duration_h": "Duration (hours)",
                "peak_risk": "Peak Risk",
                "peak_level": "Peak Level",
                "min_margin_c": "Minimum Margin (°C)",
                "max_humidity_pct": "Maximum Humidity (%)",
            }
            summary_excel = summary_excel[list(summary_cols.keys())].rename(columns=summary_cols)
            summary_excel.to_excel(writer, index=False, sheet_name="Risk Summary")

        # Auto-size
        for ws in writer.sheets.values():
            for col_cells in ws.columns:
                max_len = max(len(str(c.value)) if c.value is not None else 0 for c in col_cells)
                col_letter = col_cells[0].column_letter
                ws.column_dimensions[col_letter].width = min(max_len + 2, 50)

    return xlsx_path


def analyze_forecast_risk(
    lat: float,
    lon: float,
    settings: Dict,
    venue: str = "venue",
    save_excel: bool = False,
    now: Optional[datetime] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Condensation risk for every upcoming forecast entry at a venue.

    Returns:
        tuple containing:
            - pd.DataFrame: per-entry forecast with risk columns
            - pd.DataFrame: risk windows (see summarize_risk_windows)
    """
    api_key = settings.get("openweathermap_api_key")
    if not api_key:
        raise WeatherError("Weather API not configured", WeatherError.NOT_CONFIGURED)

    print(f"\n--- Processing {venue} ---")
    df = fetch_forecast(lat, lon, api_key, timeout=settings["request_timeout_s"])

    now_ts = pd.Timestamp(as_utc(now or datetime.now(timezone.utc)))
    upcoming = df[df["Time"] > now_ts].reset_index(drop=True)
    if upcoming.empty:
        print(f"[{venue}] No upcoming forecast entries.")
        return upcoming, pd.DataFrame(columns=SUMMARY_COLUMNS)

    flagged = attach_condensation_risk(upcoming, venue)
    summary = summarize_risk_windows(flagged)
    if summary.empty:
        print(f"[{venue}] No condensation risk windows found.")
    else:
        print(f"[{venue}] {len(summary)} condensation risk window(s):")
        print(summary)

    if save_excel:
        try:
            xlsx_path = export_risk_report(flagged, summary, settings["reports_dir"])
            print(f"\nAnalysis complete. Excel saved:\n{xlsx_path}")
        except OSError as e:
            print(f"\nError saving Excel file: {e}")

    return flagged, summary


# ============================================================================
# 3) Preview utility
# ============================================================================

def print_risk_preview(df: pd.DataFrame):
    """Print a quick preview of per-entry risk rows."""
    if df is None or df.empty:
        print("\nNo condensation risk data.")
        return
    cols = [
        "venue",
        "Local Time",
        "Temperature (°C)",
        "Humidity (%)",
        "Wind Speed (m/s)",
        "Cloud Cover (%)",
        "Dew Point (°C)",
        "Glass Temp (°C)",
        "Condensation Risk",
        "Risk Level",
    ]
    present = [c for c in cols if c in df.columns]
    print("\n=== Condensation Risk Rows (first 30) ===")
    print(df[present].head(30))
