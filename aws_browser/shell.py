from __future__ import annotations
"""Top-level browser state: page history, views and pickers."""
from dataclasses import dataclass, field
import logging
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError

from .costs_view import CostsView
from .fetch import FetchSession, FetchTicket
from .instances_view import InstancesView
from .models import (
    KIND_COSTS,
    KIND_INSTANCES,
    KIND_OBJECTS,
    HomePage,
    ObjectFile,
    Page,
    RegionSummary,
    ResourceDetailPage,
    ResourceListPage,
)
from .navigation import NavigationStack
from .objects_view import ObjectsView
from .presenter import BrowserPresenter
from .views import RegionMemo, ResourceView

LOGGER = logging.getLogger(__name__)

SERVICES = (
    (KIND_INSTANCES, "EC2 instances"),
    (KIND_OBJECTS, "S3 buckets"),
    (KIND_COSTS, "Costs"),
)

PICKER_REGION = "region"
PICKER_PROFILE = "profile"

Listener = Callable[[], None]


@dataclass
class Picker:
    """Modal list used to choose a region or credential profile."""

    kind: str
    items: list[str] = field(default_factory=list)
    selected: int = 0
    loading: bool = False
    error: Optional[str] = None

    @property
    def selected_item(self) -> Optional[str]:
        if 0 <= self.selected < len(self.items):
            return self.items[self.selected]
        return None

    def move(self, delta: int) -> None:
        if not self.items:
            self.selected = 0
            return
        self.selected = max(0, min(len(self.items) - 1, self.selected + delta))


class BrowserShell:
    """Owns the application state and turns user intents into transitions.

    Listeners registered with :meth:`add_listener` are called after every
    state change; rendering reads the shell and never mutates it.
    """

    def __init__(
        self,
        presenter: BrowserPresenter,
        *,
        instances: InstancesView | None = None,
        objects: ObjectsView | None = None,
        costs: CostsView | None = None,
    ) -> None:
        self.presenter = presenter
        self.navigation = NavigationStack()
        self.region_memo = RegionMemo()
        self.instances = instances or InstancesView(presenter)
        self.objects = objects or ObjectsView(presenter, region_memo=self.region_memo)
        self.costs = costs or CostsView(presenter)
        self._views: dict[str, ResourceView] = {
            KIND_INSTANCES: self.instances,
            KIND_OBJECTS: self.objects,
            KIND_COSTS: self.costs,
        }
        for view in self._views.values():
            view.set_listener(self.notify)
        self.home_selected = 0
        self.picker: Optional[Picker] = None
        self._regions: list[RegionSummary] = []
        self._regions_session = FetchSession()
        self._listeners: list[Listener] = []

    @property
    def active_page(self) -> Page:
        return self.navigation.active

    @property
    def active_view(self) -> Optional[ResourceView]:
        return self.view_for(self.active_page)

    @property
    def profile(self) -> str | None:
        return self.presenter.profile

    @property
    def region(self) -> str | None:
        return self.presenter.region

    def view_for(self, page: Page) -> Optional[ResourceView]:
        kind = getattr(page, "kind", None)
        return self._views.get(kind) if kind else None

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # Navigation

    def open_service(self, kind: str) -> None:
        if kind not in self._views:
            raise ValueError(f"Unknown service '{kind}'")
        self.push(ResourceListPage(kind))

    def push(self, page: Page) -> None:
        previous = self.navigation.active
        self.navigation.push(page)
        self._page_changed(previous, page)

    def back(self) -> bool:
        previous = self.navigation.active
        page = self.navigation.back()
        if page is None:
            return False
        self._page_changed(previous, page)
        return True

    def forward(self) -> bool:
        previous = self.navigation.active
        page = self.navigation.forward()
        if page is None:
            return False
        self._page_changed(previous, page)
        return True

    def _page_changed(self, previous: Page, current: Page) -> None:
        previous_view = self.view_for(previous)
        current_view = self.view_for(current)
        if previous_view is not None:
            previous_view.dismiss_messages()
            if previous_view is not current_view:
                previous_view.suspend()
        LOGGER.debug("Active page: %r", current)
        if isinstance(current, ResourceListPage) and current_view is not None:
            current_view.enter(current)
        elif isinstance(current, ResourceDetailPage) and isinstance(current.item, ObjectFile):
            self.objects.open_detail(current.extra or "", current.item)
        self.notify()

    # Intents

    def move_selection(self, delta: int) -> None:
        if self.picker is not None:
            self.picker.move(delta)
            self.notify()
            return
        page = self.active_page
        if isinstance(page, HomePage):
            self.home_selected = max(0, min(len(SERVICES) - 1, self.home_selected + delta))
            self.notify()
        elif isinstance(page, ResourceListPage):
            self._views[page.kind].move_selection(delta)

    def confirm(self) -> None:
        if self.picker is not None:
            self.choose_picker_item()
            return
        page = self.active_page
        if isinstance(page, HomePage):
            self.open_service(SERVICES[self.home_selected][0])
        elif isinstance(page, ResourceListPage):
            if page.kind == KIND_INSTANCES:
                target = self.instances.detail_page()
            elif page.kind == KIND_OBJECTS:
                target = self.objects.target_page()
            else:
                self.costs.expand_selected()
                return
            if target is not None:
                self.push(target)

    def next_page(self) -> None:
        if isinstance(self.active_page, ResourceListPage):
            self.active_view.next_page()

    def previous_page(self) -> None:
        if isinstance(self.active_page, ResourceListPage):
            self.active_view.previous_page()

    def refresh(self) -> None:
        if isinstance(self.active_page, ResourceListPage):
            self.active_view.refresh()

    def auto_refresh(self) -> None:
        page = self.active_page
        if isinstance(page, ResourceListPage) and page.kind == KIND_INSTANCES:
            self.instances.auto_refresh()

    def cancel_pending(self) -> None:
        view = self.active_view
        if view is not None:
            view.cancel_pending()
        if isinstance(self.active_page, ResourceDetailPage) and self.active_page.kind == KIND_OBJECTS:
            self.objects.cancel_download()

    def dismiss_messages(self) -> None:
        view = self.active_view
        if view is not None:
            view.dismiss_messages()
            self.notify()

    # Region and profile pickers

    def open_region_picker(self) -> None:
        self.picker = Picker(PICKER_REGION, items=[r.name for r in self._regions])
        if self.region in self.picker.items:
            self.picker.selected = self.picker.items.index(self.region)
        if not self._regions:
            self._load_regions()
        self.notify()

    def open_profile_picker(self) -> None:
        picker = Picker(PICKER_PROFILE)
        try:
            picker.items = self.presenter.list_profiles()
        except (BotoCoreError, OSError) as exc:
            LOGGER.exception("Could not list credential profiles")
            picker.error = str(exc)
        if self.profile in picker.items:
            picker.selected = picker.items.index(self.profile)
        self.picker = picker
        self.notify()

    def close_picker(self) -> None:
        if self.picker is None:
            return
        if self.picker.kind == PICKER_REGION:
            self._regions_session.invalidate()
        self.picker = None
        self.notify()

    def choose_picker_item(self) -> None:
        picker = self.picker
        if picker is None or picker.selected_item is None:
            return
        if picker.kind == PICKER_REGION:
            self.select_region(picker.selected_item)
        else:
            self.select_profile(picker.selected_item)

    def select_region(self, region: str) -> None:
        self.picker = None
        if self.presenter.update_region(region):
            LOGGER.debug("Region changed to %s", region)
            self._identity_changed()
        self.notify()

    def select_profile(self, profile: str) -> None:
        self.picker = None
        if self.presenter.update_profile(profile):
            LOGGER.debug("Profile changed to %s", profile)
            self._regions = []
            self._identity_changed()
        self.notify()

    def _identity_changed(self) -> None:
        for view in self._views.values():
            view.reset()
        page = self.active_page
        if isinstance(page, ResourceListPage):
            self._views[page.kind].enter(page)
        elif isinstance(page, ResourceDetailPage) and isinstance(page.item, ObjectFile):
            self.objects.open_detail(page.extra or "", page.item)

    def _load_regions(self) -> None:
        ticket = self._regions_session.begin()
        self.picker.loading = True
        self.presenter.list_regions(
            cancel_requested=ticket.cancel_requested,
            on_success=lambda regions: self._regions_loaded(ticket, regions),
            on_error=lambda message: self._regions_failed(ticket, message),
            on_done=lambda: self._regions_done(ticket),
        )

    def _regions_loaded(self, ticket: FetchTicket, regions: list[RegionSummary]) -> None:
        if not self._regions_session.is_current(ticket):
            return
        self._regions = list(regions)
        if self.picker is not None and self.picker.kind == PICKER_REGION:
            self.picker.items = [region.name for region in regions]
            if self.region in self.picker.items:
                self.picker.selected = self.picker.items.index(self.region)
        self.notify()

    def _regions_failed(self, ticket: FetchTicket, message: str) -> None:
        if not self._regions_session.is_current(ticket):
            return
        if self.picker is not None and self.picker.kind == PICKER_REGION:
            self.picker.error = message
        self.notify()

    def _regions_done(self, ticket: FetchTicket) -> None:
        if not self._regions_session.is_current(ticket):
            return
        if self.picker is not None and self.picker.kind == PICKER_REGION:
            self.picker.loading = False
        self.notify()
