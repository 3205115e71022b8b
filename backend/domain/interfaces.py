"""
Domain interfaces - Contracts for the remote services behind the agent tools.
Implementations report remote failures as {"error": ...} instead of raising,
so a tool can hand the failure back to the model as its result.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class ISearchClient(ABC):
    """Web search returning ranked results."""

    @abstractmethod
    async def search(self, query: str, max_results: int = 1) -> Dict[str, Any]:
        """Return {"query": ..., "results": [{"title", "url", "content"}, ...]}."""
        pass


class ILocationResolver(ABC):
    """Resolves a free-form place name to coordinates."""

    @abstractmethod
    async def resolve(self, place: str) -> Dict[str, Any]:
        """Return {"latitude", "longitude", "display_name"}."""
        pass


class IWeatherClient(ABC):
    """Current conditions for a named place."""

    @abstractmethod
    async def current_conditions(self, place: str) -> Dict[str, Any]:
        """Return temperature and wind speed plus the units they are reported in."""
        pass
