"""Command-line weather lookup.

Examples:
  python -m cityweather.cli                 # prompt for a city
  python -m cityweather.cli "new delhi"
  python -m cityweather.cli chennai --json
"""

import argparse
import sys
import time
from datetime import datetime, timezone, tzinfo
from typing import Optional

from cityweather.config import Settings
from cityweather.logging_config import configure_logging
from cityweather.models.weather import WeatherResult
from cityweather.weather_service.errors import CityNotFoundError, WeatherServiceError
from cityweather.weather_service.weather import build_weather_service

PROMPT = "Type in any city to get the weather: "


def format_observation_time(value: str, tz: Optional[tzinfo] = None) -> str:
    """Format a provider timestamp like "Monday, Jan 2, 2006 - 3:04 PM".

    Provider times without an offset are GMT. They are shown in ``tz``, or
    in the local zone when ``tz`` is None.
    """
    try:
        observed = datetime.fromisoformat(value)
    except ValueError:
        return "Unavailable"
    if observed.tzinfo is None:
        observed = observed.replace(tzinfo=timezone.utc)
    observed = observed.astimezone(tz)
    hour = observed.hour % 12 or 12
    return (
        f"{observed:%A, %b} {observed.day}, {observed.year} - "
        f"{hour}:{observed:%M %p}"
    )


def format_weather(weather: WeatherResult, tz: Optional[tzinfo] = None) -> str:
    """Render a weather result as a human-readable block."""
    lines = [
        f"Weather Details for {weather.city.strip()}:",
        f"  Latitude      : {weather.lat:.4f}",
        f"  Longitude     : {weather.lon:.4f}",
        f"  Current Time  : {format_observation_time(weather.time, tz)}",
        f"  Temperature   : {weather.temp_c:.1f} °C",
    ]
    if weather.humidity is not None:
        lines.append(f"  Humidity      : {weather.humidity:.0f} %")
    if weather.rain is not None:
        lines.append(f"  Rain          : {weather.rain:.1f} mm")
    lines.append(f"  Conditions    : {weather.description}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show the current weather for a city",
        epilog=__doc__.split("\n", 2)[2],
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "city",
        nargs="?",
        help="City name; prompts when omitted",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw JSON result",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log lookup details to stderr",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(
        "INFO" if args.verbose else "WARNING", json_logs=False, use_stderr=True
    )

    city = args.city
    if city is None:
        try:
            city = input(PROMPT)
        except EOFError:
            city = ""
    if not city.strip():
        print("Invalid city name, try again.", file=sys.stderr)
        return 2

    service = build_weather_service(settings)
    try:
        weather = service.get_weather(
            city, deadline=time.monotonic() + settings.request_deadline_s
        )
    except CityNotFoundError:
        print("City not found in our database", file=sys.stderr)
        return 1
    except WeatherServiceError as exc:
        print(f"Weather lookup failed: {exc}", file=sys.stderr)
        return 1
    finally:
        service.close()

    print(weather.to_payload() if args.json else format_weather(weather))
    return 0


if __name__ == "__main__":
    sys.exit(main())
