from __future__ import annotations
"""Generation-guarded fetch sessions."""
import threading


class FetchTicket:
    """Handle for one fetch attempt.

    The cancellation flag is read from worker threads through
    :meth:`cancel_requested`, so it is backed by a :class:`threading.Event`.
    """

    def __init__(self, generation: int) -> None:
        self.generation = generation
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def cancel_requested(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self) -> str:
        return f"FetchTicket(generation={self.generation}, cancelled={self.cancelled})"


class FetchSession:
    """Tracks the current fetch of a single view.

    Starting a fetch supersedes the previous one: its ticket is cancelled
    and, whatever the order in which calls complete, only the ticket whose
    generation matches :attr:`generation` may commit results.
    """

    def __init__(self) -> None:
        self.generation = 0
        self._current: FetchTicket | None = None

    def begin(self) -> FetchTicket:
        self.cancel_previous()
        self.generation += 1
        self._current = FetchTicket(self.generation)
        return self._current

    def is_current(self, ticket: FetchTicket) -> bool:
        return ticket.generation == self.generation

    def cancel_previous(self) -> None:
        if self._current is not None:
            self._current.cancel()

    def invalidate(self) -> None:
        """Cancel the outstanding fetch so nothing it returns is applied."""

        self.cancel_previous()
        self._current = None
        self.generation += 1
