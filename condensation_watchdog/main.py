#!/usr/bin/env python3
"""
Main module for the Condensation Watchdog application.
Condensation risk on glass padel court walls from weather conditions.
"""

import argparse
import json
import os
import sys

import uvicorn

from condensation_watchdog import sql_io
from condensation_watchdog.condensation import WeatherObservation, estimate_condensation_risk
from condensation_watchdog.config import (
    SETTINGS_ENV_VAR,
    ConfigError,
    default_settings_path,
    load_settings,
    to_si_observation,
)
from condensation_watchdog.risk_analysis import analyze_forecast_risk, analyze_match_weather, print_risk_preview
from condensation_watchdog.weather import WeatherError

ERROR_MESSAGES = {
    ConfigError.FILE_NOT_FOUND: "Error: Settings file not found",
    ConfigError.INVALID_JSON: "Error: Invalid settings format",
    ConfigError.INVALID_UNITS: "Error: Invalid unit specification",
    ConfigError.INVALID_VALUE: "Error: Invalid settings value",
    ConfigError.GENERAL_ERROR: "Error: Failed to process settings",
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="condensation-watchdog")
    parser.add_argument("--settings", default=None, help="Path to Settings.json")
    sub = parser.add_subparsers(dest="command", required=True)

    est = sub.add_parser("estimate", help="Risk for raw weather values")
    est.add_argument("temperature", type=float)
    est.add_argument("humidity", type=float)
    est.add_argument("wind_speed", type=float)
    est.add_argument("cloud_cover", type=float)
    est.add_argument("hour", type=int)
    est.add_argument("--units", default="SI", help="SI (°C, m/s) or US (°F, mph)")

    m = sub.add_parser("match", help="Weather payload for a match id")
    m.add_argument("match_id")

    fc = sub.add_parser("forecast", help="Risk windows over the forecast for a venue")
    fc.add_argument("lat", type=float, nargs="?")
    fc.add_argument("lon", type=float, nargs="?")
    fc.add_argument("--venue", default=None)
    fc.add_argument("--excel", action="store_true", help="Save an Excel report")

    sub.add_parser("init-db", help="Create the weather cache table")

    srv = sub.add_parser("serve", help="Run the HTTP API")
    srv.add_argument("--host", default="0.0.0.0")
    srv.add_argument("--port", type=int, default=8010)
    return parser


def _estimate(args) -> int:
    try:
        values = to_si_observation(
            {
                "temperature": args.temperature,
                "humidity": args.humidity,
                "wind_speed": args.wind_speed,
                "cloud_cover": args.cloud_cover,
            },
            args.units,
        )
    except ValueError as e:
        print(f"\n{ERROR_MESSAGES[ConfigError.INVALID_UNITS]}: {e}")
        return ConfigError.INVALID_UNITS

    assessment = estimate_condensation_risk(WeatherObservation(hour=args.hour, **values))
    print(json.dumps(assessment.to_dict(), indent=2))
    return 0


def _forecast(args, settings) -> int:
    venue = settings.get("venue") or {}
    lat = args.lat if args.lat is not None else venue.get("lat")
    lon = args.lon if args.lon is not None else venue.get("lon")
    if lat is None or lon is None:
        print("\nError: No coordinates given and no 'venue' in settings")
        return ConfigError.INVALID_VALUE
    name = args.venue or venue.get("name") or f"{lat},{lon}"

    flagged, _summary = analyze_forecast_risk(float(lat), float(lon), settings, venue=name, save_excel=args.excel)
    print_risk_preview(flagged)
    return 0


def main(argv=None) -> int:
    """Main entry point for the Condensation Watchdog application."""
    args = _build_parser().parse_args(argv)

    try:
        print("\n=== Condensation Watchdog ===")
        if args.command == "estimate":
            return _estimate(args)

        path = args.settings or default_settings_path()
        if args.settings is None and not os.path.exists(path):
            path = None
        settings, error_code = load_settings(path)
        if error_code != ConfigError.SUCCESS:
            error_msg = ERROR_MESSAGES.get(error_code, f"Unknown error occurred (code: {error_code})")
            print(f"\nAnalysis failed: {error_msg}")
            return error_code
        sql_io.configure(settings)

        if args.command == "match":
            print(json.dumps(analyze_match_weather(args.match_id, settings), indent=2))
            return 0
        if args.command == "forecast":
            return _forecast(args, settings)
        if args.command == "init-db":
            sql_io.ensure_schema()
            print("Weather cache table is ready.")
            return 0

        if path:
            os.environ[SETTINGS_ENV_VAR] = os.path.abspath(path)
        uvicorn.run("condensation_watchdog.api:app", host=args.host, port=args.port)
        return 0

    except WeatherError as e:
        print(f"\nAnalysis failed: {e.error}" + (f" ({e.message})" if e.message else ""))
        return e.code
    except ValueError as e:
        print(f"\nInvalid input: {e}")
        return 2
    except Exception as e:
        print(f"\nUnexpected error occurred: {str(e)}")
        return -1


if __name__ == "__main__":
    sys.exit(main())
