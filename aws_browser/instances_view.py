from __future__ import annotations
"""EC2 instance listing with status checks and start/stop actions."""
import logging
from typing import Optional

from .fetch import FetchTicket
from .models import KIND_INSTANCES, Instance, InstanceStatus, Page, ResourceDetailPage, ResourcePage
from .ui_utils import format_status_checks
from .views import PaginatedView

LOGGER = logging.getLogger(__name__)

STATUS_LOOKUP_LIMIT = 20
ACTION_UNAVAILABLE = "Action not available for this state."
ACTION_IN_PROGRESS = "Another action is still in progress."


class InstancesView(PaginatedView):
    kind = KIND_INSTANCES

    def __init__(self, presenter, *, on_change=None) -> None:
        super().__init__(presenter, on_change=on_change)
        self.statuses: dict[str, InstanceStatus] = {}
        self.action_busy = False
        self.action_message: Optional[str] = None
        self.action_error: Optional[str] = None

    def enter(self, page: Page) -> None:
        if not self.loaded and not self.loading:
            self.refresh()

    def status_text(self, instance_id: str) -> Optional[str]:
        status = self.statuses.get(instance_id)
        if status is None:
            return None
        return format_status_checks(status.instance_status, status.system_status)

    def detail_page(self) -> Optional[ResourceDetailPage]:
        instance = self.selected_item
        if instance is None:
            return None
        return ResourceDetailPage(KIND_INSTANCES, instance, extra=self.status_text(instance.id))

    def auto_refresh(self) -> None:
        if self.loaded and not self.loading and not self.action_busy:
            self.reload()

    def start_selected(self) -> bool:
        return self._request_state_change("start")

    def stop_selected(self) -> bool:
        return self._request_state_change("stop")

    def dismiss_messages(self) -> None:
        super().dismiss_messages()
        self.action_error = None
        if not self.action_busy:
            self.action_message = None

    def reset(self) -> None:
        super().reset()
        self.statuses = {}
        self.action_error = None
        self.action_message = None

    def _request_page(self, ticket: FetchTicket, index: int, token: Optional[str]) -> None:
        self._presenter.list_instances(
            continuation_token=token,
            cancel_requested=ticket.cancel_requested,
            on_success=lambda page: self._instances_loaded(ticket, index, page),
            on_error=lambda message: self._fail(ticket, message),
            on_done=lambda: self._done(ticket),
        )

    def _instances_loaded(self, ticket: FetchTicket, index: int, page: ResourcePage) -> None:
        if not self._page_loaded(ticket, index, page):
            return
        instance_ids = [instance.id for instance in page.items[:STATUS_LOOKUP_LIMIT]]
        if not instance_ids:
            return
        self._presenter.describe_instance_statuses(
            instance_ids=instance_ids,
            cancel_requested=ticket.cancel_requested,
            on_success=lambda statuses: self._merge_statuses(ticket, statuses),
            on_error=lambda message: LOGGER.debug("Status check lookup failed: %s", message),
        )

    def _merge_statuses(self, ticket: FetchTicket, statuses: list[InstanceStatus]) -> None:
        if not self._is_current(ticket):
            return
        for status in statuses:
            self.statuses[status.id] = status
        self._changed()

    def _request_state_change(self, action: str) -> bool:
        instance: Instance | None = self.selected_item
        if instance is None:
            return False
        if self.action_busy:
            self.action_error = ACTION_IN_PROGRESS
            self._changed()
            return False
        required = "stopped" if action == "start" else "running"
        if (instance.state or "").lower() != required:
            self.action_error = ACTION_UNAVAILABLE
            self._changed()
            return False

        self.action_busy = True
        self.action_error = None
        verb = "Starting" if action == "start" else "Stopping"
        self.action_message = f"{verb} {instance.id}…"
        self._changed()
        self._presenter.change_instance_state(
            instance_ids=[instance.id],
            target_state="running" if action == "start" else "stopped",
            on_success=lambda: self._action_succeeded(action, instance.id),
            on_error=self._action_failed,
            on_done=self._action_done,
        )
        return True

    def _action_succeeded(self, action: str, instance_id: str) -> None:
        label = "Start" if action == "start" else "Stop"
        self.action_message = f"{label} request sent for {instance_id}; state may take time to update."
        self.reload()

    def _action_failed(self, message: str) -> None:
        self.action_error = message
        self.action_message = None
        self._changed()

    def _action_done(self) -> None:
        self.action_busy = False
        self._changed()
