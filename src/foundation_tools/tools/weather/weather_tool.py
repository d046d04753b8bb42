from typing import Any

import httpx
from loguru import logger

from foundation_tools.tool import error_result, success_result
from foundation_tools.tools.errors import WeatherError

_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_TIMEOUT_SECONDS = 20
_CURRENT_FIELDS = (
    "temperature_2m,apparent_temperature,relative_humidity_2m,"
    "wind_speed_10m,weather_code"
)

_UNITS = {
    "celsius": {"temperature_unit": "celsius", "wind_speed_unit": "kmh"},
    "fahrenheit": {"temperature_unit": "fahrenheit", "wind_speed_unit": "mph"},
}

# WMO weather interpretation codes
_WMO_CODE_TO_CONDITION: dict[int, str] = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing Rime Fog",
    51: "Light Drizzle",
    53: "Moderate Drizzle",
    55: "Dense Drizzle",
    56: "Freezing Drizzle",
    57: "Heavy Freezing Drizzle",
    61: "Slight Rain",
    63: "Moderate Rain",
    65: "Heavy Rain",
    66: "Freezing Rain",
    67: "Heavy Freezing Rain",
    71: "Slight Snow",
    73: "Moderate Snow",
    75: "Heavy Snow",
    77: "Snow Grains",
    80: "Slight Showers",
    81: "Moderate Showers",
    82: "Violent Showers",
    85: "Slight Snow Showers",
    86: "Heavy Snow Showers",
    95: "Thunderstorms",
    96: "Thunderstorms with Hail",
    99: "Heavy Thunderstorms with Hail",
}


def describe_weather_code(code: int | None) -> str:
    if code is None:
        return "Unknown"
    return _WMO_CODE_TO_CONDITION.get(int(code), "Unknown")


class WeatherTool:
    @property
    def name(self) -> str:
        return "weather"

    @property
    def description(self) -> str:
        return (
            "Get the current weather for a city or place name: temperature, "
            "feels-like temperature, humidity, wind speed and conditions."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "City or place name (e.g. 'Paris' or 'San Francisco').",
                },
                "units": {
                    "type": "string",
                    "enum": list(_UNITS),
                    "description": "Temperature units (default 'celsius').",
                },
            },
            "required": ["location"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> dict[str, Any]:
        location = str(tool_input.get("location", "")).strip()
        units = str(tool_input.get("units") or "celsius").strip().lower()
        try:
            if not location:
                raise WeatherError.empty_location()
            if units not in _UNITS:
                raise WeatherError.invalid_units(units)

            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                place = await _geocode(client, location)
                current = await _current_weather(client, place["latitude"], place["longitude"], units)
        except WeatherError as ex:
            return error_result("Failed to get weather", ex, location=location)
        except httpx.HTTPError as ex:
            logger.error(f"weather error: {ex}")
            return error_result("Failed to get weather", WeatherError(f"Network error: {ex}"), location=location)

        return success_result(
            f"Current weather for {place.get('name', location)}",
            location=place.get("name", location),
            country=place.get("country", ""),
            latitude=place["latitude"],
            longitude=place["longitude"],
            temperature=current.get("temperature_2m"),
            feelsLike=current.get("apparent_temperature"),
            humidity=current.get("relative_humidity_2m"),
            windSpeed=current.get("wind_speed_10m"),
            condition=describe_weather_code(current.get("weather_code")),
            units=units,
        )


async def _geocode(client: httpx.AsyncClient, location: str) -> dict[str, Any]:
    response = await client.get(
        _GEOCODING_URL,
        params={"name": location, "count": 1, "language": "en", "format": "json"},
    )
    response.raise_for_status()
    results = _decode(response, "Geocoding service").get("results") or []
    if not results:
        raise WeatherError.location_not_found(location)
    return results[0]


async def _current_weather(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    units: str,
) -> dict[str, Any]:
    response = await client.get(
        _FORECAST_URL,
        params={
            "latitude": latitude,
            "longitude": longitude,
            "current": _CURRENT_FIELDS,
            **_UNITS[units],
        },
    )
    response.raise_for_status()
    return _decode(response, "Forecast service").get("current") or {}


def _decode(response: httpx.Response, service: str) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as ex:
        raise WeatherError.invalid_response(service) from ex
    if not isinstance(data, dict):
        raise WeatherError.invalid_response(service)
    return data
