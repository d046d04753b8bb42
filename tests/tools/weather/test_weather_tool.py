import asyncio
import json
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from foundation_tools.tools.weather.weather_tool import WeatherTool, describe_weather_code

_GEOCODE = {
    "results": [
        {"name": "Paris", "country": "France", "latitude": 48.85, "longitude": 2.35},
    ]
}

_FORECAST = {
    "current": {
        "temperature_2m": 21.4,
        "apparent_temperature": 20.9,
        "relative_humidity_2m": 55,
        "wind_speed_10m": 12.3,
        "weather_code": 2,
    }
}


def _json_response(data: dict) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = data
    resp.raise_for_status.return_value = None
    return resp


def _mock_client(*responses: MagicMock, error: Exception | None = None) -> tuple[MagicMock, AsyncMock]:
    client = AsyncMock()
    if error is not None:
        client.get.side_effect = error
    else:
        client.get.side_effect = list(responses)
    ctx = MagicMock()
    ctx.__aenter__.return_value = client
    ctx.__aexit__.return_value = False
    return ctx, client


class DescribeWeatherCodeTests(unittest.TestCase):
    def test_known_and_unknown_codes(self) -> None:
        self.assertEqual("Clear", describe_weather_code(0))
        self.assertEqual("Thunderstorms", describe_weather_code(95))
        self.assertEqual("Unknown", describe_weather_code(42))
        self.assertEqual("Unknown", describe_weather_code(None))


class WeatherToolTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tool = WeatherTool()

    def test_name_and_required_params(self) -> None:
        self.assertEqual("weather", self.tool.name)
        self.assertEqual(["location"], self.tool.input_schema["required"])

    @patch("foundation_tools.tools.weather.weather_tool.httpx.AsyncClient")
    def test_current_weather(self, mock_client_cls: MagicMock) -> None:
        ctx, client = _mock_client(_json_response(_GEOCODE), _json_response(_FORECAST))
        mock_client_cls.return_value = ctx

        result = asyncio.run(self.tool.execute({"location": "paris"}))

        self.assertEqual("success", result["status"])
        self.assertEqual("Paris", result["location"])
        self.assertEqual("France", result["country"])
        self.assertEqual(21.4, result["temperature"])
        self.assertEqual(20.9, result["feelsLike"])
        self.assertEqual(55, result["humidity"])
        self.assertEqual(12.3, result["windSpeed"])
        self.assertEqual("Partly Cloudy", result["condition"])
        self.assertEqual("celsius", result["units"])

        _, forecast_kwargs = client.get.call_args_list[1]
        self.assertEqual(48.85, forecast_kwargs["params"]["latitude"])
        self.assertEqual("celsius", forecast_kwargs["params"]["temperature_unit"])

    @patch("foundation_tools.tools.weather.weather_tool.httpx.AsyncClient")
    def test_fahrenheit_units(self, mock_client_cls: MagicMock) -> None:
        ctx, client = _mock_client(_json_response(_GEOCODE), _json_response(_FORECAST))
        mock_client_cls.return_value = ctx

        result = asyncio.run(self.tool.execute({"location": "Paris", "units": "Fahrenheit"}))

        self.assertEqual("fahrenheit", result["units"])
        _, forecast_kwargs = client.get.call_args_list[1]
        self.assertEqual("fahrenheit", forecast_kwargs["params"]["temperature_unit"])
        self.assertEqual("mph", forecast_kwargs["params"]["wind_speed_unit"])

    @patch("foundation_tools.tools.weather.weather_tool.httpx.AsyncClient")
    def test_unknown_location_is_error(self, mock_client_cls: MagicMock) -> None:
        ctx, client = _mock_client(_json_response({}))
        mock_client_cls.return_value = ctx

        result = asyncio.run(self.tool.execute({"location": "Atlantis"}))

        self.assertEqual("error", result["status"])
        self.assertEqual("Location not found: Atlantis", result["error"])
        self.assertEqual(1, client.get.call_count)

    def test_empty_location_is_error(self) -> None:
        result = asyncio.run(self.tool.execute({"location": ""}))

        self.assertEqual("error", result["status"])
        self.assertEqual("Location cannot be empty", result["error"])

    def test_invalid_units_is_error(self) -> None:
        result = asyncio.run(self.tool.execute({"location": "Paris", "units": "kelvin"}))

        self.assertEqual("error", result["status"])
        self.assertIn("kelvin", result["error"])

    @patch("foundation_tools.tools.weather.weather_tool.httpx.AsyncClient")
    def test_network_error_is_error(self, mock_client_cls: MagicMock) -> None:
        ctx, _ = _mock_client(error=httpx.ConnectError("offline"))
        mock_client_cls.return_value = ctx

        result = asyncio.run(self.tool.execute({"location": "Paris"}))

        self.assertEqual("error", result["status"])
        self.assertIn("Network error: offline", result["error"])
        self.assertEqual("Paris", result["location"])

    @patch("foundation_tools.tools.weather.weather_tool.httpx.AsyncClient")
    def test_non_json_forecast_is_error(self, mock_client_cls: MagicMock) -> None:
        bad = _json_response({})
        bad.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
        ctx, _ = _mock_client(_json_response(_GEOCODE), bad)
        mock_client_cls.return_value = ctx

        result = asyncio.run(self.tool.execute({"location": "Paris"}))

        self.assertEqual("error", result["status"])
        self.assertEqual("Forecast service returned a response that is not valid JSON", result["error"])


if __name__ == "__main__":
    unittest.main()
