# minicasino/domain/history/history_cache.py
import logging
from typing import List, Optional

from minicasino.domain.events.casino_events import HistoryEvent, HistoryEventType
from minicasino.domain.exceptions import MalformedResponseError
from minicasino.infrastructure.http.endpoints import DEFAULT_ENDPOINTS
from .entities.history_entry import HistoryEntry


class HistoryCache:
    """
    Read-through holder of one page of past rounds, most recent first.

    Every refresh replaces the held page outright; there is no merging.
    """
    def __init__(self, session_store, page_size: int = 10, endpoints=None,
                 event_dispatcher=None):
        self.logger = logging.getLogger("domain.history")
        self.session_store = session_store
        self.page_size = page_size
        self.endpoint = (endpoints or DEFAULT_ENDPOINTS)["history"]
        self.event_dispatcher = event_dispatcher

        self.entries: List[HistoryEntry] = []
        self.page = 1
        self.total_pages = 1
        self.game_type: Optional[str] = None

    async def refresh(self, game_type: Optional[str] = None, page: int = 1,
                      limit: Optional[int] = None) -> List[HistoryEntry]:
        """
        Fetch one page of history and hold it.

        Args:
            game_type: Optional ``gameType`` filter (e.g. "doble")
            page: 1-based page number
            limit: Page size, defaults to the configured one

        Returns:
            The entries of that page
        """
        page = max(1, int(page))
        limit = limit or self.page_size
        body = await self.session_store.request(self.endpoint, params={
            "page": page,
            "limit": limit,
            "gameType": game_type,
        })

        raw_entries = body.get("games", body.get("entries"))
        if not isinstance(raw_entries, list):
            raise MalformedResponseError("History response has no entry list")
        try:
            entries = [HistoryEntry.from_dict(item) for item in raw_entries if isinstance(item, dict)]
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"History response has an unreadable entry: {e}") from e

        self.entries = entries
        self.page = page
        self.total_pages = max(1, int(body.get("totalPages") or 1))
        self.game_type = game_type
        self.page_size = limit
        self.logger.debug(f"History page {page}/{self.total_pages} ({len(entries)} entries, filter={game_type})")

        if self.event_dispatcher:
            self.event_dispatcher.dispatch(HistoryEvent(
                type=HistoryEventType.HISTORY_REFRESHED,
                page=self.page,
                total_pages=self.total_pages,
                data={"game_type": game_type, "count": len(entries)},
            ))
        return self.entries

    async def reload(self) -> List[HistoryEntry]:
        """Re-fetch the most recent page with the current filter."""
        return await self.refresh(self.game_type, 1, self.page_size)

    async def next_page(self) -> List[HistoryEntry]:
        if self.page >= self.total_pages:
            return self.entries
        return await self.refresh(self.game_type, self.page + 1, self.page_size)

    async def previous_page(self) -> List[HistoryEntry]:
        if self.page <= 1:
            return self.entries
        return await self.refresh(self.game_type, self.page - 1, self.page_size)

    def clear(self):
        self.entries = []
        self.page = 1
        self.total_pages = 1
        self.game_type = None
