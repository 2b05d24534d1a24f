from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pandas as pd
import psycopg2
import pytest
from openpyxl import load_workbook

from condensation_watchdog.risk_analysis import (
    SUMMARY_COLUMNS,
    analyze_forecast_risk,
    analyze_match_weather,
    attach_condensation_risk,
    export_risk_report,
    summarize_risk_windows,
)
from condensation_watchdog.weather import WeatherError, forecast_to_frame

MATCH = {"location": "Padel Club Centrum", "date_time": datetime(2025, 6, 2, 3, 20, tzinfo=timezone.utc)}
LOCATION = {"id": "loc-1", "name": "Padel Club Centrum", "latitude": 59.33, "longitude": 18.07}
WEATHER = {
    "temperature": 15.0,
    "humidity": 95,
    "wind_speed": 0.5,
    "cloud_cover": 5,
    "condition": "Clear",
    "icon": "01n",
    "time": datetime(2025, 6, 2, 3, tzinfo=timezone.utc),
    "local_hour": 5,
}


@pytest.fixture
def db():
    with patch("condensation_watchdog.risk_analysis.sql_io") as mock_sql:
        mock_sql.fetch_match.return_value = dict(MATCH)
        mock_sql.fetch_location.return_value = dict(LOCATION)
        mock_sql.fetch_cached_weather.return_value = None
        yield mock_sql


class TestAnalyzeMatchWeather:
    @patch("condensation_watchdog.risk_analysis.get_match_weather")
    def test_fresh_fetch_computes_and_caches(self, mock_weather, db, settings, now):
        mock_weather.return_value = dict(WEATHER)

        payload = analyze_match_weather("m-1", settings, now=now)

        assert payload["condensationRisk"] == 100
        assert payload["riskLevel"] == "high"
        assert payload["dewPoint"] == 14.2
        assert "towel" in payload["riskDescription"]

        db.fetch_location.assert_called_once_with("Padel Club Centrum")
        bucket = datetime(2025, 6, 2, 3, tzinfo=timezone.utc)
        db.fetch_cached_weather.assert_called_once_with("loc-1", bucket, 60)

        args, kwargs = mock_weather.call_args
        assert args[:4] == (59.33, 18.07, MATCH["date_time"], "test-key")
        assert kwargs["horizon_hours"] == 120

        row = db.upsert_weather_cache.call_args[0][0]
        assert row["location_id"] == "loc-1"
        assert row["forecast_time"] == bucket
        assert row["condensation_risk"] == 100

    def test_cache_hit_skips_provider(self, db, settings):
        db.fetch_cached_weather.return_value = {
            "temperature": 12.6, "humidity": 80, "wind_speed": 2.04, "cloud_cover": 40,
            "weather_condition": "Clouds", "weather_icon": "03n", "condensation_risk": 31,
            "dew_point": 9.2, "risk_description": "cached text",
        }
        with patch("condensation_watchdog.risk_analysis.get_match_weather") as mock_weather:
            payload = analyze_match_weather("m-1", settings)
        mock_weather.assert_not_called()
        assert payload["riskLevel"] == "medium"
        assert payload["temperature"] == 13
        assert payload["riskDescription"] == "cached text"
        db.upsert_weather_cache.assert_not_called()

    def test_empty_match_id(self, db, settings):
        with pytest.raises(WeatherError) as exc:
            analyze_match_weather("", settings)
        assert exc.value.status == 400

    def test_match_not_found(self, db, settings):
        db.fetch_match.return_value = None
        with pytest.raises(WeatherError) as exc:
            analyze_match_weather("m-1", settings)
        assert exc.value.code == WeatherError.MATCH_NOT_FOUND

    def test_location_not_found(self, db, settings):
        db.fetch_location.return_value = None
        with pytest.raises(WeatherError) as exc:
            analyze_match_weather("m-1", settings)
        assert exc.value.code == WeatherError.LOCATION_NOT_FOUND
        assert exc.value.message == "Weather data unavailable for this location"

    def test_missing_coordinates(self, db, settings):
        db.fetch_location.return_value = dict(LOCATION, latitude=None)
        with pytest.raises(WeatherError) as exc:
            analyze_match_weather("m-1", settings)
        assert exc.value.code == WeatherError.MISSING_COORDINATES

    def test_api_key_not_configured(self, db, settings):
        settings["openweathermap_api_key"] = None
        with pytest.raises(WeatherError) as exc:
            analyze_match_weather("m-1", settings)
        assert exc.value.status == 503

    @patch("condensation_watchdog.risk_analysis.get_match_weather")
    def test_cache_write_failure_still_returns_payload(self, mock_weather, db, settings):
        mock_weather.return_value = dict(WEATHER)
        db.upsert_weather_cache.side_effect = psycopg2.OperationalError("gone")
        payload = analyze_match_weather("m-1", settings)
        assert payload["condensationRisk"] == 100

    @patch("condensation_watchdog.risk_analysis.get_match_weather")
    def test_string_match_time_is_parsed(self, mock_weather, db, settings):
        db.fetch_match.return_value = dict(MATCH, date_time="2025-06-02T03:20:00+00:00")
        mock_weather.return_value = dict(WEATHER)
        analyze_match_weather("m-1", settings)
        bucket = db.fetch_cached_weather.call_args[0][1]
        assert bucket == datetime(2025, 6, 2, 3, tzinfo=timezone.utc)


class TestForecastRisk:
    def test_attach_and_summarize(self, forecast_body):
        flagged = attach_condensation_risk(forecast_to_frame(forecast_body), "Centrum")

        assert list(flagged["Risk Level"]) == ["low", "low", "high", "high", "low"]
        assert list(flagged["any_risk"]) == [False, False, True, True, False]
        assert flagged.loc[0, "Condensation Risk"] == 0
        assert flagged.loc[2, "Margin (°C)"] == -7.5

        summary = summarize_risk_windows(flagged)
        assert list(summary.columns) == SUMMARY_COLUMNS
        assert len(summary) == 1
        window = summary.iloc[0]
        assert window["venue"] == "Centrum"
        assert window["duration_h"] == 6
        assert window["peak_risk"] == 100
        assert window["peak_level"] == "high"
        assert window["min_margin_c"] == -7.5
        assert window["max_humidity_pct"] == 95

    def test_separate_windows_for_separated_risk(self, forecast_body):
        flagged = attach_condensation_risk(forecast_to_frame(forecast_body), "Centrum")
        flagged.loc[0, "any_risk"] = True
        flagged["risk_group"] = (flagged["any_risk"] != flagged["any_risk"].shift()).cumsum()
        assert len(summarize_risk_windows(flagged)) == 2

    def test_no_risk_gives_empty_summary(self, forecast_body):
        flagged = attach_condensation_risk(forecast_to_frame(forecast_body).iloc[[0, 4]], "Centrum")
        summary = summarize_risk_windows(flagged)
        assert summary.empty
        assert list(summary.columns) == SUMMARY_COLUMNS

    @patch("condensation_watchdog.risk_analysis.fetch_forecast")
    def test_analyze_forecast_risk_drops_past_entries(self, mock_fetch, forecast_body, settings, now, tmp_path):
        mock_fetch.return_value = forecast_to_frame(forecast_body)
        settings["reports_dir"] = str(tmp_path)

        flagged, summary = analyze_forecast_risk(1.0, 2.0, settings, venue="Centrum", save_excel=True, now=now)

        assert len(flagged) == 4
        assert flagged["Time"].min() > pd.Timestamp(now)
        assert len(summary) == 1
        reports = list(tmp_path.glob("Condensation_Risk_Report_*.xlsx"))
        assert len(reports) == 1

    def test_analyze_forecast_risk_needs_api_key(self, settings):
        settings["openweathermap_api_key"] = ""
        with pytest.raises(WeatherError):
            analyze_forecast_risk(1.0, 2.0, settings)


def test_export_risk_report_sheets(forecast_body, tmp_path):
    flagged = attach_condensation_risk(forecast_to_frame(forecast_body), "Centrum")
    summary = summarize_risk_windows(flagged)

    path = export_risk_report(flagged, summary, str(tmp_path / "reports"))

    wb = load_workbook(path)
    assert wb.sheetnames == ["Detailed Risks", "Risk Summary"]
    detailed = wb["Detailed Risks"]
    assert detailed.max_row == 6
    header = [c.value for c in detailed[1]]
    assert header[:3] == ["Date", "Time", "Venue"]
    assert "Condensation Risk" in header
    assert wb["Risk Summary"].max_row == 2
