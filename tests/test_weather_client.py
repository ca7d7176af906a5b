from __future__ import annotations

import httpx
import pytest

from retail_briefing.errors import WeatherUnavailableError
from retail_briefing.infrastructure.weather.providers import OpenWeatherClient, format_current_weather


def test_format_current_weather():
    payload = {"weather": [{"description": "cielo claro"}], "main": {"temp": 21.6}}
    assert format_current_weather(payload) == "Cielo claro, 22°C"


def test_format_rejects_incomplete_payload():
    with pytest.raises(WeatherUnavailableError):
        format_current_weather({"main": {}})


def test_client_requires_api_key():
    with pytest.raises(ValueError):
        OpenWeatherClient(api_key="")


@pytest.mark.asyncio
async def test_client_queries_metric_spanish_weather():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"weather": [{"description": "lluvia ligera"}], "main": {"temp": 16.2}})

    client = OpenWeatherClient(
        "key",
        city="Puebla",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    try:
        assert await client.get_current_weather_summary() == "Lluvia ligera, 16°C"
    finally:
        await client.aclose()

    assert seen == {"q": "Puebla", "appid": "key", "units": "metric", "lang": "es"}


@pytest.mark.asyncio
async def test_client_wraps_http_errors():
    client = OpenWeatherClient(
        "key",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(401))),
    )
    try:
        with pytest.raises(WeatherUnavailableError):
            await client.get_current_weather_summary()
    finally:
        await client.aclose()
