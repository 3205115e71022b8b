"""
Service layer - Agent tools using LangChain @tool decorator.
These are LangChain-compatible tools for use with the LangGraph agent.
"""
from typing import Optional
import json
import logging

from langchain_core.tools import tool

from domain.interfaces import IWeatherClient, ISearchClient
from infrastructure.tool_clients import OpenMeteoWeatherClient, TavilySearchClient

logger = logging.getLogger(__name__)

SEARCH_MAX_RESULTS = 1

# Tool dependency holders (for injection)
_search_client: Optional[ISearchClient] = None
_weather_client: Optional[IWeatherClient] = None


def initialize_tools(
    search_client: Optional[ISearchClient] = None,
    weather_client: Optional[IWeatherClient] = None
):
    """Initialize tool dependencies. Missing clients fall back to the public APIs."""
    global _search_client, _weather_client
    _search_client = search_client or TavilySearchClient()
    _weather_client = weather_client or OpenMeteoWeatherClient()


@tool
async def web_search(query: str) -> str:
    """Search the web for current information. Use for news, facts and anything after the model's training data.

    Args:
        query: The search query

    Returns:
        JSON list of the top results with title, url and content
    """
    logger.info(f"Search tool called: query={query}")
    if _search_client is None:
        return "Search service not available"

    result = await _search_client.search(query, max_results=SEARCH_MAX_RESULTS)
    if "error" in result:
        return f"Search failed: {result['error']}"
    return json.dumps(result["results"])


@tool
async def get_weather(city: str, state: Optional[str] = None) -> str:
    """Get the current weather for a city. Use when the user asks about weather or temperature.

    Args:
        city: City to search for weather
        state: Optional state abbreviation to disambiguate the city

    Returns:
        Current temperature and wind speed
    """
    logger.info(f"Weather tool called: city={city}, state={state}")
    if _weather_client is None:
        return "Weather service not available"

    place = f"{city}, {state}" if state else city
    result = await _weather_client.current_conditions(place)
    if "error" in result:
        return f"Failed to fetch weather: {result['error']}"

    units = result.get("units", {})
    return (
        f"Current temperature in {place}: {result.get('temperature')}"
        f"{units.get('temperature_2m', '°C')}, wind {result.get('wind_speed')}"
        f" {units.get('wind_speed_10m', 'km/h')}."
    )


def get_agent_tools() -> list:
    if _search_client is None or _weather_client is None:
        initialize_tools(_search_client, _weather_client)
    return [web_search, get_weather]
