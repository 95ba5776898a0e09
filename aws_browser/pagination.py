from __future__ import annotations
"""Continuation-token bookkeeping for paginated listings."""
from typing import Optional


class CursorOutOfRangeError(IndexError):
    """Raised when a page is requested before its token is known."""


class PaginationCursor:
    """Ordered chain of continuation tokens for one listing.

    ``tokens[i]`` is the token used to request page ``i``; page 0 is always
    requested without a token. The chain only grows by appending the token
    returned with the last known page, so a late response for an earlier
    page can never fork it.
    """

    def __init__(self) -> None:
        self._tokens: list[Optional[str]] = [None]

    @property
    def tokens(self) -> list[Optional[str]]:
        return list(self._tokens)

    @property
    def known_pages(self) -> int:
        return len(self._tokens)

    def has_page(self, index: int) -> bool:
        return 0 <= index < len(self._tokens)

    def request_token(self, index: int) -> Optional[str]:
        if not self.has_page(index):
            raise CursorOutOfRangeError(
                f"Page {index} is not reachable ({len(self._tokens)} known)"
            )
        return self._tokens[index]

    def record_next(self, index: int, next_token: Optional[str]) -> bool:
        """Store the token for page ``index + 1``.

        Returns ``True`` when the chain was extended.
        """

        if next_token is None or index + 1 != len(self._tokens):
            return False
        self._tokens.append(next_token)
        return True

    def reset(self) -> None:
        self._tokens = [None]
