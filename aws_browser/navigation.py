from __future__ import annotations
"""Back/forward page history."""
from typing import Optional

from .models import HomePage, Page


class NavigationStack:
    """Browser-style page history whose root page is never popped."""

    def __init__(self, root: Page | None = None) -> None:
        self._pages: list[Page] = [root if root is not None else HomePage()]
        self._forward: list[Page] = []

    @property
    def active(self) -> Page:
        return self._pages[-1]

    @property
    def depth(self) -> int:
        return len(self._pages)

    @property
    def pages(self) -> list[Page]:
        return list(self._pages)

    @property
    def forward_pages(self) -> list[Page]:
        return list(self._forward)

    @property
    def can_go_back(self) -> bool:
        return len(self._pages) > 1

    @property
    def can_go_forward(self) -> bool:
        return bool(self._forward)

    def push(self, page: Page) -> Page:
        self._pages.append(page)
        self._forward = []
        return page

    def back(self) -> Optional[Page]:
        if not self.can_go_back:
            return None
        popped = self._pages.pop()
        self._forward.insert(0, popped)
        return self.active

    def forward(self) -> Optional[Page]:
        if not self._forward:
            return None
        self._pages.append(self._forward.pop(0))
        return self.active
