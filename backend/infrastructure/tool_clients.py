"""
Infrastructure layer - HTTP clients for the agent tools.

- Tavily: web search
- Nominatim (OpenStreetMap): place name to coordinates
- Open-Meteo: current conditions at a coordinate

None of them raise on remote failures; see domain.interfaces.
"""
import logging
import os
from typing import Any, Dict, Optional

import httpx

from domain.interfaces import ILocationResolver, ISearchClient, IWeatherClient

logger = logging.getLogger(__name__)

USER_AGENT = "llm-gateway/1.0"
DEFAULT_TIMEOUT = 10.0


class TavilySearchClient(ISearchClient):
    """Tavily search API. The key defaults to TAVILY_API_KEY."""

    SEARCH_URL = "https://api.tavily.com/search"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 20.0):
        self.api_key = api_key if api_key is not None else os.getenv("TAVILY_API_KEY", "")
        self.timeout = timeout

    async def search(self, query: str, max_results: int = 1) -> Dict[str, Any]:
        if not self.api_key:
            return {"error": "TAVILY_API_KEY is not configured"}

        payload = {"api_key": self.api_key, "query": query, "max_results": max_results}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as http:
                reply = await http.post(self.SEARCH_URL, json=payload)
                reply.raise_for_status()
                body = reply.json()
        except httpx.HTTPError as e:
            logger.error(f"Tavily search failed for '{query[:50]}': {e}")
            return {"error": str(e)}

        hits = [
            {key: hit.get(key, "") for key in ("title", "url", "content")}
            for hit in body.get("results", [])[:max_results]
        ]
        logger.info(f"Tavily returned {len(hits)} results for '{query[:50]}'")
        return {"query": query, "results": hits}


class NominatimLocationResolver(ILocationResolver):
    """Free-text place lookup against OpenStreetMap Nominatim."""

    SEARCH_URL = "https://nominatim.openstreetmap.org/search"

    async def resolve(self, place: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as http:
                reply = await http.get(
                    self.SEARCH_URL,
                    params={"q": place, "format": "json", "limit": 1},
                    headers={"User-Agent": USER_AGENT}
                )
                reply.raise_for_status()
                matches = reply.json()
        except httpx.HTTPError as e:
            logger.error(f"Nominatim lookup failed for '{place}': {e}")
            return {"error": str(e)}

        if not matches:
            return {"error": f"Location not found: {place}"}

        best = matches[0]
        return {
            "latitude": float(best["lat"]),
            "longitude": float(best["lon"]),
            "display_name": best.get("display_name", place),
        }


class OpenMeteoWeatherClient(IWeatherClient):
    """Open-Meteo current conditions, resolving place names first."""

    FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
    CURRENT_FIELDS = "temperature_2m,wind_speed_10m,weathercode"

    def __init__(self, resolver: Optional[ILocationResolver] = None):
        self.resolver = resolver or NominatimLocationResolver()

    async def current_conditions(self, place: str) -> Dict[str, Any]:
        location = await self.resolver.resolve(place)
        if "error" in location:
            return location

        try:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as http:
                reply = await http.get(
                    self.FORECAST_URL,
                    params={
                        "latitude": location["latitude"],
                        "longitude": location["longitude"],
                        "current": self.CURRENT_FIELDS,
                    }
                )
                reply.raise_for_status()
                body = reply.json()
        except httpx.HTTPError as e:
            logger.error(f"Open-Meteo request failed for '{place}': {e}")
            return {"error": str(e)}

        current = body.get("current", {})
        logger.info(f"Current conditions for {location['display_name']}: {current}")
        return {
            "location": location,
            "temperature": current.get("temperature_2m"),
            "wind_speed": current.get("wind_speed_10m"),
            "weathercode": current.get("weathercode"),
            "units": body.get("current_units", {}),
        }
