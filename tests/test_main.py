import json
from unittest.mock import patch

from condensation_watchdog.config import ConfigError
from condensation_watchdog.main import main
from condensation_watchdog.weather import WeatherError


def _json_from(out: str) -> dict:
    return json.loads(out[out.index("{"):])


class TestEstimateCommand:
    def test_si(self, capsys):
        assert main(["estimate", "15", "95", "0.5", "5", "5"]) == 0
        data = _json_from(capsys.readouterr().out)
        assert data["risk"] == 100
        assert data["level"] == "high"
        assert data["breakdown"]["time_label"] == "early morning"

    def test_us_units(self, capsys):
        # 68 °F / 6.7 mph == 20 °C / 3 m/s
        assert main(["estimate", "68", "50", "6.71", "80", "14", "--units", "US"]) == 0
        data = _json_from(capsys.readouterr().out)
        assert data["dew_point"] == 9.3
        assert data["risk"] == 0

    def test_bad_units(self):
        assert main(["estimate", "15", "95", "0.5", "5", "5", "--units", "K"]) == ConfigError.INVALID_UNITS

    def test_bad_hour(self, capsys):
        assert main(["estimate", "15", "95", "0.5", "5", "30"]) == 2
        assert "Invalid input" in capsys.readouterr().out


class TestMatchCommand:
    @patch("condensation_watchdog.main.analyze_match_weather")
    def test_match(self, mock_analyze, tmp_path, capsys, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mock_analyze.return_value = {"condensationRisk": 42}
        assert main(["match", "m-1"]) == 0
        assert _json_from(capsys.readouterr().out.split("===", 2)[-1]) == {"condensationRisk": 42}

    @patch("condensation_watchdog.main.analyze_match_weather")
    def test_match_error_returns_code(self, mock_analyze, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mock_analyze.side_effect = WeatherError("Match not found", WeatherError.MATCH_NOT_FOUND)
        assert main(["match", "m-1"]) == WeatherError.MATCH_NOT_FOUND

    def test_missing_explicit_settings_file(self, tmp_path):
        assert main(["--settings", str(tmp_path / "nope.json"), "match", "m-1"]) == ConfigError.FILE_NOT_FOUND


class TestForecastCommand:
    def test_needs_coordinates(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert main(["forecast"]) == ConfigError.INVALID_VALUE

    @patch("condensation_watchdog.main.analyze_forecast_risk")
    def test_uses_venue_from_settings(self, mock_analyze, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "Settings.json").write_text(json.dumps({
            "openweathermap_api_key": "k",
            "venue": {"name": "Centrum", "lat": 59.3, "lon": 18.1},
        }))
        mock_analyze.return_value = (None, None)
        assert main(["forecast", "--excel"]) == 0
        args, kwargs = mock_analyze.call_args
        assert args[:2] == (59.3, 18.1)
        assert kwargs["venue"] == "Centrum"
        assert kwargs["save_excel"] is True


class TestInitDbCommand:
    @patch("condensation_watchdog.main.sql_io.ensure_schema")
    def test_creates_cache_table(self, mock_schema, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        assert main(["init-db"]) == 0
        mock_schema.assert_called_once_with()
        assert "Weather cache table is ready" in capsys.readouterr().out

    @patch("condensation_watchdog.main.sql_io.ensure_schema")
    def test_database_unreachable(self, mock_schema, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        mock_schema.side_effect = RuntimeError("Failed to connect to database: refused")
        assert main(["init-db"]) == -1
