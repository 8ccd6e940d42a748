"""Command-line entry point: resolve a city once, or serve the HTTP API."""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from config import Settings
from errors import WeatherCacheError
from weather_service import FreshnessResolver, build_resolver


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("City weather cache proxy")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--cache-ttl", type=int, default=None, help="Cache TTL in seconds")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--max-retries", type=int, default=None, help="Upstream attempts per call")
    parser.add_argument("--verbose", action="store_true")

    commands = parser.add_subparsers(dest="command", required=True)

    resolve = commands.add_parser("resolve", help="Print current weather for a city")
    resolve.add_argument("city")
    resolve.add_argument("--json", action="store_true", help="Print the raw JSON response")

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[str], verbose: bool, production: bool = False) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    if production:
        fmt = '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
    else:
        fmt = "%(asctime)s - %(levelname)s - %(message)s"
    logging.basicConfig(level=log_level, format=fmt, handlers=handlers)


def load_settings(args: argparse.Namespace) -> Settings:
    try:
        settings = Settings()
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    if args.cache_ttl is not None:
        settings.cache_ttl_seconds = args.cache_ttl
    if args.timeout is not None:
        settings.upstream_timeout = args.timeout
    if args.max_retries is not None:
        settings.max_attempts = args.max_retries

    problems = settings.validate()
    if problems:
        raise SystemExit(f"Invalid configuration: {'; '.join(problems)}")

    logging.info(
        "Configuration loaded: backend=%s ttl=%ss timeout=%ss attempts=%s",
        settings.cache_backend,
        settings.cache_ttl_seconds,
        settings.upstream_timeout,
        settings.max_attempts,
    )
    return settings


def format_weather_lines(response: dict) -> List[str]:
    place = response["city"]
    if response.get("country"):
        place = f"{place}, {response['country']}"
    lines = [
        f"{place}: {response['temperature']}°C, {response['description']}",
        f"Wind {response['wind_speed']} km/h",
    ]
    if response.get("temp_max") is not None and response.get("temp_min") is not None:
        lines.append(f"High {response['temp_max']}°C / Low {response['temp_min']}°C")
    lines.append(f"Updated {response['last_updated']} (source: {response['source']})")
    return lines


def run_resolve(resolver: FreshnessResolver, city: str, as_json: bool) -> int:
    try:
        response = resolver.resolve(city).to_response()
    except WeatherCacheError as err:
        logging.error("Weather lookup failed (%s): %s", err.kind, err)
        print(f"error: {err}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(response, indent=2))
    else:
        print("\n".join(format_weather_lines(response)))
    return 0


def run_server(settings: Settings, host: str, port: int) -> None:
    import uvicorn

    from app import create_app

    uvicorn.run(create_app(settings), host=host, port=port)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv()
    setup_logging(args.log_file, args.verbose, os.getenv("ENVIRONMENT") == "production")
    settings = load_settings(args)

    if args.command == "serve":
        run_server(settings, args.host, args.port)
        return 0

    resolver = build_resolver(settings)
    return run_resolve(resolver, args.city, args.json)


if __name__ == "__main__":
    sys.exit(main())
