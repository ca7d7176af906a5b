"""Weather gateways: OpenWeatherMap over httpx and a per-month climate table."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

import httpx

from retail_briefing.errors import WeatherUnavailableError

# Typical Mexico City conditions, January first.
MONTHLY_CLIMATE: Sequence[str] = (
    "Fresco, 14°C, soleado",
    "Templado, 16°C, seco",
    "Templado, 18°C, seco",
    "Cálido, 20°C, seco",
    "Cálido, 22°C, posibles lluvias",
    "Templado, 20°C, lluvias",
    "Templado, 18°C, lluvias",
    "Templado, 18°C, lluvias",
    "Templado, 17°C, lluvias",
    "Templado, 16°C, lluvias ligeras",
    "Fresco, 15°C, seco",
    "Fresco, 14°C, seco",
)


class MonthlyClimateTable:
    """Deterministic placeholder: the representative climate of the month."""

    def __init__(self, table: Sequence[str] = MONTHLY_CLIMATE) -> None:
        if len(table) != 12:
            raise ValueError("Monthly climate table needs exactly twelve entries.")
        self._table = tuple(table)

    def summary_for(self, day: date) -> str:
        return self._table[day.month - 1]


class OpenWeatherClient:
    """Minimal OpenWeatherMap client returning a one-line Spanish summary."""

    BASE_URL = "https://api.openweathermap.org/data/2.5"

    def __init__(
        self,
        api_key: str,
        city: str = "Mexico City",
        *,
        timeout: float = 10.0,
        proxy_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise ValueError("OPENWEATHER_API_KEY is required to contact OpenWeatherMap.")
        self._api_key = api_key
        self._city = city
        if http_client is None:
            client_kwargs: Dict[str, Any] = {"timeout": httpx.Timeout(timeout, connect=5.0)}
            if proxy_url:
                client_kwargs["proxy"] = proxy_url
            http_client = httpx.AsyncClient(**client_kwargs)
        self._http_client = http_client

    async def get_current_weather_summary(self) -> str:
        params = {"q": self._city, "appid": self._api_key, "units": "metric", "lang": "es"}
        try:
            response = await self._http_client.get(f"{self.BASE_URL}/weather", params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise WeatherUnavailableError(f"OpenWeatherMap request failed: {exc}") from exc
        return format_current_weather(payload)

    async def aclose(self) -> None:
        """Release the underlying HTTP session."""
        await self._http_client.aclose()


def format_current_weather(payload: Dict[str, Any]) -> str:
    """Render ``{weather: [{description}], main: {temp}}`` as 'description, 21°C'."""
    try:
        temp = round(float(payload["main"]["temp"]))
        description = str(payload["weather"][0]["description"]).strip()
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise WeatherUnavailableError(f"Unexpected OpenWeatherMap payload: {exc}") from exc
    if description:
        description = description[0].upper() + description[1:]
    return f"{description}, {temp}°C" if description else f"{temp}°C"
