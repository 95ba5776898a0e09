from __future__ import annotations
"""Shared state and fetch lifecycle for the resource views."""
import logging
from typing import Callable, Optional

from .fetch import FetchSession, FetchTicket
from .models import Page, ResourcePage
from .pagination import PaginationCursor

LOGGER = logging.getLogger(__name__)

NO_MORE_PAGES = "No more pages."

ChangeFn = Callable[[], None]


class RegionMemo:
    """Append-only bucket to region mapping kept for the whole process."""

    def __init__(self) -> None:
        self._regions: dict[str, str] = {}
        self._pending: set[str] = set()

    def __contains__(self, bucket: object) -> bool:
        return bucket in self._regions

    def get(self, bucket: str | None) -> Optional[str]:
        if bucket is None:
            return None
        return self._regions.get(bucket)

    def remember(self, bucket: str, region: str) -> bool:
        self._pending.discard(bucket)
        if bucket in self._regions:
            return False
        self._regions[bucket] = region
        return True

    def begin_lookup(self, bucket: str) -> bool:
        """Reserve a lookup; ``False`` when resolved or already pending."""

        if bucket in self._regions or bucket in self._pending:
            return False
        self._pending.add(bucket)
        return True

    def abandon_lookup(self, bucket: str) -> None:
        self._pending.discard(bucket)


class ResourceView:
    """State of one screen: displayed items, selection and banners.

    All mutation happens on the UI thread, either directly from input
    handling or from presenter callbacks guarded by :class:`FetchSession`.
    """

    kind = ""

    def __init__(self, presenter, *, on_change: ChangeFn | None = None) -> None:
        self._presenter = presenter
        self._on_change = on_change or (lambda: None)
        self._session = FetchSession()
        self.items: list = []
        self.selected = 0
        self.loading = False
        self.error: Optional[str] = None
        self.message: Optional[str] = None

    @property
    def session(self) -> FetchSession:
        return self._session

    @property
    def selected_item(self):
        if 0 <= self.selected < len(self.items):
            return self.items[self.selected]
        return None

    def set_listener(self, on_change: ChangeFn) -> None:
        self._on_change = on_change

    def enter(self, page: Page) -> None:
        raise NotImplementedError

    def refresh(self) -> None:
        raise NotImplementedError

    def reload(self) -> None:
        self.refresh()

    def next_page(self) -> bool:
        return False

    def previous_page(self) -> bool:
        return False

    def move_selection(self, delta: int) -> None:
        self.select(self.selected + delta)

    def select(self, index: int) -> None:
        self.selected = self._clamp(index)
        self._changed()

    def replace_items(self, items: list, *, reset_selection: bool = False) -> None:
        self.items = list(items)
        self.selected = 0 if reset_selection else self._clamp(self.selected)
        self._changed()

    def dismiss_messages(self) -> None:
        self.error = None
        self.message = None

    def cancel_pending(self) -> None:
        self._session.invalidate()
        if self.loading:
            self.loading = False
            self._changed()

    def suspend(self) -> None:
        """Stop caring about in-flight results when the view is left."""

        self._session.invalidate()
        self.loading = False

    def reset(self) -> None:
        """Forget everything tied to the previous profile or region."""

        self._session.invalidate()
        self.items = []
        self.selected = 0
        self.loading = False
        self.error = None
        self.message = None

    def _clamp(self, index: int) -> int:
        if not self.items:
            return 0
        return max(0, min(len(self.items) - 1, index))

    def _begin(self) -> FetchTicket:
        ticket = self._session.begin()
        self.loading = True
        self.error = None
        self.message = None
        self._changed()
        return ticket

    def _is_current(self, ticket: FetchTicket) -> bool:
        if self._session.is_current(ticket):
            return True
        LOGGER.debug("Discarding stale %s result (generation %d)", self.kind, ticket.generation)
        return False

    def _fail(self, ticket: FetchTicket, message: str) -> None:
        if not self._is_current(ticket):
            return
        self.error = message
        self._changed()

    def _done(self, ticket: FetchTicket) -> None:
        if not self._session.is_current(ticket):
            return
        self.loading = False
        self._changed()

    def _changed(self) -> None:
        self._on_change()


class PaginatedView(ResourceView):
    """A view whose listing is paged through continuation tokens."""

    def __init__(self, presenter, *, on_change: ChangeFn | None = None) -> None:
        super().__init__(presenter, on_change=on_change)
        self._cursor = PaginationCursor()
        self.page_index = 0
        self.loaded = False
        self._restart = False

    @property
    def cursor(self) -> PaginationCursor:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self.loaded and self._cursor.has_page(self.page_index + 1)

    def load_page(self, index: int) -> None:
        token = self._cursor.request_token(index)
        ticket = self._begin()
        self._restart = False
        self._request_page(ticket, index, token)

    def refresh(self) -> None:
        """Reload from the first page; the token chain restarts once it arrives."""

        ticket = self._begin()
        self._restart = True
        self._request_page(ticket, 0, None)

    def reload(self) -> None:
        if not self.loaded:
            self.refresh()
            return
        self.load_page(self.page_index)

    def next_page(self) -> bool:
        target = self.page_index + 1
        if not self.loaded or not self._cursor.has_page(target):
            self.message = NO_MORE_PAGES
            self._changed()
            return False
        self.load_page(target)
        return True

    def previous_page(self) -> bool:
        if self.page_index == 0:
            return False
        self.load_page(self.page_index - 1)
        return True

    def reset(self) -> None:
        super().reset()
        self._cursor.reset()
        self.page_index = 0
        self.loaded = False
        self._restart = False

    def _request_page(self, ticket: FetchTicket, index: int, token: Optional[str]) -> None:
        raise NotImplementedError

    def _page_loaded(self, ticket: FetchTicket, index: int, page: ResourcePage) -> bool:
        """Commit a fetched page if ``ticket`` is still current."""

        if not self._is_current(ticket):
            return False
        if self._restart:
            self._cursor.reset()
            self._restart = False
        self._cursor.record_next(index, page.next_token)
        moved = index != self.page_index or not self.loaded
        self.page_index = index
        self.loaded = True
        self.replace_items(page.items, reset_selection=moved)
        return True
