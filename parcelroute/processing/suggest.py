"""
Debounced address autocomplete.

Keystroke-driven callers fire a query per keypress; only the last one within
the debounce window should reach the geocoder.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..models.geo import AddressCandidate

logger = logging.getLogger(__name__)


class AddressSuggester:
    """
    Debounce wrapper around a geocoder search.

    suggest() returns None when a newer call superseded it during the delay,
    [] for queries too short to search, and the candidates otherwise.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[list[AddressCandidate]]],
        delay_s: float = 0.3,
        min_length: int = 3,
        limit: int = 5,
    ):
        self._search = search
        self.delay_s = delay_s
        self.min_length = min_length
        self.limit = limit
        self._generation = 0

    async def suggest(self, partial_query: str) -> Optional[list[AddressCandidate]]:
        self._generation += 1
        generation = self._generation

        await asyncio.sleep(self.delay_s)
        if generation != self._generation:
            return None

        query = (partial_query or "").strip()
        if len(query) < self.min_length:
            return []

        candidates = await self._search(query)
        if generation != self._generation:
            logger.debug(f"Dropping stale suggestions for '{query}'")
            return None
        return candidates[: self.limit]
