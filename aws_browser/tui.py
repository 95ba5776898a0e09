from __future__ import annotations
"""Textual front end rendering :class:`BrowserShell` state."""
import asyncio
import logging
from typing import Optional

from rich.console import Group
from rich.panel import Panel
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.suggester import Suggester
from textual.widgets import Footer, Header, Input, Static

from .costs_view import CostsView
from .instances_view import InstancesView
from .models import (
    KIND_COSTS,
    KIND_INSTANCES,
    KIND_OBJECTS,
    Bucket,
    HomePage,
    Instance,
    ObjectFile,
    ObjectFolder,
    ResourceDetailPage,
    ResourceListPage,
)
from .objects_view import DOWNLOAD_DONE, DOWNLOAD_SAVING, ObjectsView
from .shell import PICKER_REGION, SERVICES, BrowserShell, Picker
from .ui_utils import (
    PALETTE,
    collapse_home,
    format_amount,
    format_percent,
    format_size,
    format_timestamp,
    instance_state_style,
    relative_name,
    status_check_style,
    suggest_paths,
)

LOGGER = logging.getLogger(__name__)

MAX_VISIBLE_OBJECTS = 200


class PathSuggester(Suggester):
    """Completes local filesystem paths for the download destination."""

    def __init__(self) -> None:
        super().__init__(use_cache=False, case_sensitive=True)

    async def get_suggestion(self, value: str) -> Optional[str]:
        suggestions = await asyncio.to_thread(suggest_paths, value)
        if not suggestions:
            return None
        suggestion = collapse_home(suggestions[0]) if value.startswith("~") else suggestions[0]
        return suggestion if suggestion.startswith(value) else None


def _banner(title: str, subtitle: str) -> Text:
    text = Text(title, style=f"bold {PALETTE['accent']}")
    text.append(f"\n{subtitle}", style=PALETTE["muted"])
    return text


def _error(message: str) -> Panel:
    return Panel(Text(message, style=PALETTE["danger"]), border_style=PALETTE["danger"])


def _info(message: str) -> Panel:
    return Panel(Text(message), border_style=PALETTE["accent"])


def _cursor_line(selected: bool) -> Text:
    return Text("➜ " if selected else "  ", style=PALETTE["accent"] if selected else "")


def render_home(shell: BrowserShell) -> Group:
    lines = Text()
    for index, (_kind, label) in enumerate(SERVICES):
        selected = index == shell.home_selected
        lines.append_text(_cursor_line(selected))
        lines.append(f"{label}\n", style=PALETTE["accent"] if selected else "")
    return Group(
        _banner("AWS Browser", "EC2, S3 and costs. Uses your AWS CLI profiles."),
        Text("Select a service:\n"),
        lines,
        _info("R picks a region, P a credential profile, q quits."),
    )


def render_instances(view: InstancesView) -> Group:
    parts: list = [
        _banner(
            "EC2 Instances",
            "j/k move, PgDn/PgUp paginate, enter details, s start, x stop, r refresh, esc back.",
        ),
        Text(f"Page {view.page_index + 1}" + (" (more with PgDn)" if view.has_more else "")),
    ]
    if view.error:
        parts.append(_error(view.error))
    if view.action_error:
        parts.append(_error(view.action_error))
    if view.loading:
        parts.append(_info("Loading instances…"))
    if view.action_message:
        parts.append(_info(view.action_message))
    if view.message:
        parts.append(_info(view.message))
    if not view.items and not view.loading:
        parts.append(_info("No instances found."))
    listing = Text()
    for index, instance in enumerate(view.items):
        listing.append_text(_cursor_line(index == view.selected))
        if instance.name:
            listing.append(f"{instance.name} ")
        listing.append(f"({instance.id}) - ")
        listing.append(instance.state or "unknown", style=instance_state_style(instance.state) or "")
        listing.append(f" {instance.instance_type or ''} {instance.availability_zone or ''}\n")
    parts.append(listing)
    selected = view.selected_item
    if selected is not None:
        parts.append(_instance_panel(selected, view.status_text(selected.id)))
    return Group(*parts)


def _instance_panel(instance: Instance, status_checks: Optional[str]) -> Panel:
    body = Text()
    body.append(f"ID: {instance.id}\n")
    body.append(f"Name: {instance.name or 'n/a'}\n")
    body.append("State: ")
    body.append(f"{instance.state or 'unknown'}\n", style=instance_state_style(instance.state) or "")
    body.append(f"Type: {instance.instance_type or 'unknown'}\n")
    body.append(f"AZ: {instance.availability_zone or 'unknown'}\n")
    body.append(f"Launched: {format_timestamp(instance.launched_at)}\n")
    body.append(f"Public IP: {instance.public_ip or 'n/a'}\n")
    body.append(f"Private IP: {instance.private_ip or 'n/a'}\n")
    body.append("Status checks: ")
    body.append(status_checks or "pending/unknown", style=status_check_style(status_checks) or "")
    return Panel(body, title=instance.name or instance.id, border_style=PALETTE["muted"])


def render_objects(view: ObjectsView) -> Group:
    region = view.bucket_region or "resolving…" if view.bucket else "n/a"
    parts: list = [
        _banner(
            "S3",
            "enter drills in, esc/← goes back, PgDn/PgUp paginate, r refresh.",
        ),
        Text(f"Path: {view.location_label} | Bucket region: {region} | Page {view.page_index + 1}"
             + (" (more with PgDn)" if view.has_more else "")),
    ]
    if view.error:
        parts.append(_error(view.error))
    if view.message:
        parts.append(_info(view.message))
    if view.loading:
        parts.append(_info("Loading buckets…" if view.bucket is None else "Loading objects…"))
    if not view.items and not view.loading:
        parts.append(_info("No buckets found." if view.bucket is None else "No objects at this path."))
    listing = Text()
    for index, item in enumerate(view.items[:MAX_VISIBLE_OBJECTS]):
        listing.append_text(_cursor_line(index == view.selected))
        if isinstance(item, Bucket):
            listing.append(f"{item.name}\n")
        elif isinstance(item, ObjectFolder):
            listing.append(f"{relative_name(item.prefix, view.prefix)}\n", style=PALETTE["info"])
        elif isinstance(item, ObjectFile):
            listing.append(f"{relative_name(item.key, view.prefix)} - ")
            listing.append(format_size(item.size), style=PALETTE["info"])
            listing.append(f" - {format_timestamp(item.last_modified)}\n", style=PALETTE["muted"])
    parts.append(listing)
    return Group(*parts)


def render_object_detail(view: ObjectsView, bucket: str, item: ObjectFile) -> Group:
    body = Text()
    body.append(f"Bucket: {bucket} ({view.region_memo.get(bucket) or 'resolving…'})\n")
    body.append("Size: ")
    body.append(f"{format_size(item.size)}\n", style=PALETTE["info"])
    body.append(f"Last modified: {format_timestamp(item.last_modified)}\n")
    body.append("Storage class: ")
    body.append(item.storage_class or "unknown", style=PALETTE["warning"])
    parts: list = [
        _banner(item.key, "d edits the download path (→ accepts a completion), enter downloads, c cancels, esc back."),
        Panel(body, border_style=PALETTE["muted"]),
    ]
    if view.download_status == DOWNLOAD_SAVING:
        parts.append(_info(f"Downloading… {format_size(view.download_progress)}"))
    elif view.download_status == DOWNLOAD_DONE:
        parts.append(_info(f"Saved to {view.download_path}"))
    if view.download_error:
        parts.append(_error(view.download_error))
    return Group(*parts)


def render_instance_detail(page: ResourceDetailPage) -> Group:
    instance: Instance = page.item
    return Group(
        _banner("EC2 Instance", "← or esc goes back. Start/stop from the list view."),
        _instance_panel(instance, page.extra),
    )


def render_costs(view: CostsView) -> Group:
    parts: list = [
        _banner(
            "AWS Costs",
            "g range, r refresh, j/k move, →/enter expand, ← collapse, a all, esc back.",
        ),
        Text(f"Range: {view.range_label}"),
    ]
    if view.error:
        parts.append(_error(view.error))
    if view.loading:
        parts.append(_info("Fetching cost data…"))
    summary = view.summary
    if summary is not None and not view.loading:
        updated = summary.last_updated.isoformat() if summary.last_updated else "n/a"
        parts.append(Text(f"Total: {format_amount(summary.total, summary.unit)} • Updated: {updated}"))
    if not view.rows and not view.loading:
        parts.append(Text("No cost data available.", style=PALETTE["muted"]))
    listing = Text()
    for index, row in enumerate(view.rows):
        selected = index == view.selected
        if row.kind == "service":
            marker = "▼" if row.id in view.expanded else "►"
        else:
            marker = "•"
        listing.append("› " if selected else "  ", style=PALETTE["accent"])
        listing.append("  " * row.level)
        listing.append(
            f"{marker} {row.name[:32]:<32} {format_amount(row.amount, row.unit):>14}  ({format_percent(row.percent)})\n",
            style=PALETTE["accent"] if selected else "",
        )
    parts.append(listing)
    parts.append(_info("Costs come from Cost Explorer (UnblendedCost) and may lag up to 24h."))
    return Group(*parts)


def render_picker(picker: Picker) -> Panel:
    title = "Select region" if picker.kind == PICKER_REGION else "Select profile"
    if picker.loading:
        return Panel(Text("Loading regions…"), title=title, border_style=PALETTE["warning"])
    if picker.error:
        body = Text(picker.error, style=PALETTE["danger"])
        body.append("\nPress esc to close.", style=PALETTE["muted"])
        return Panel(body, title=title, border_style=PALETTE["danger"])
    body = Text()
    if not picker.items:
        body.append("Nothing to choose from.", style=PALETTE["muted"])
    for index, name in enumerate(picker.items):
        body.append_text(_cursor_line(index == picker.selected))
        body.append(f"{name}\n")
    return Panel(body, title=f"{title} (enter applies, esc cancels)", border_style=PALETTE["accent"])


def render_page(shell: BrowserShell):
    page = shell.active_page
    if isinstance(page, HomePage):
        content = render_home(shell)
    elif isinstance(page, ResourceListPage) and page.kind == KIND_INSTANCES:
        content = render_instances(shell.instances)
    elif isinstance(page, ResourceListPage) and page.kind == KIND_OBJECTS:
        content = render_objects(shell.objects)
    elif isinstance(page, ResourceListPage) and page.kind == KIND_COSTS:
        content = render_costs(shell.costs)
    elif isinstance(page, ResourceDetailPage) and page.kind == KIND_OBJECTS:
        content = render_object_detail(shell.objects, page.extra or "", page.item)
    else:
        content = render_instance_detail(page)
    if shell.picker is not None:
        return Group(content, render_picker(shell.picker))
    return content


class AwsBrowserApp(App):
    """Terminal UI delegating every decision to :class:`BrowserShell`."""

    TITLE = "AWS Browser"
    AUTO_FOCUS = None
    CSS = """
    #body { padding: 0 1; }
    #download-path { margin: 0 1; }
    """
    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("up,k", "move(-1)", "Up", show=False),
        Binding("down,j", "move(1)", "Down", show=False),
        Binding("enter", "confirm", "Open"),
        Binding("escape", "back", "Back"),
        Binding("left", "left", "Back", show=False),
        Binding("right", "right", "Forward", show=False),
        Binding("pagedown", "next_page", "Next page", show=False),
        Binding("pageup", "previous_page", "Previous page", show=False),
        Binding("r", "refresh", "Refresh"),
        Binding("c", "cancel", "Cancel", show=False),
        Binding("s", "start", "Start", show=False),
        Binding("x", "stop", "Stop", show=False),
        Binding("a", "toggle_all", "Expand all", show=False),
        Binding("g", "cycle_range", "Range", show=False),
        Binding("d", "edit_download", "Download", show=False),
        Binding("R", "region", "Region"),
        Binding("P", "profile", "Profile"),
    ]

    def __init__(self, shell: BrowserShell, *, refresh_seconds: int = 30) -> None:
        super().__init__()
        self.shell = shell
        self._refresh_seconds = max(int(refresh_seconds), 1)
        self._body: Static | None = None
        self._download_input: Input | None = None
        self._shown_download_target: tuple[str, str] | None = None
        shell.presenter.set_dispatch(self.call_from_thread)

    def compose(self) -> ComposeResult:
        yield Header()
        self._body = Static(id="body")
        yield self._body
        self._download_input = Input(
            placeholder="Download path",
            suggester=PathSuggester(),
            id="download-path",
            disabled=True,
        )
        yield self._download_input
        yield Footer()

    def on_mount(self) -> None:
        self.shell.add_listener(self.render_state)
        LOGGER.debug("Instances auto refresh every %ss", self._refresh_seconds)
        self.set_interval(self._refresh_seconds, self.shell.auto_refresh)
        self.render_state()

    def render_state(self) -> None:
        if self._body is None or self._download_input is None:
            return
        shell = self.shell
        self.sub_title = f"Profile: {shell.profile or 'default'} | Region: {shell.region or 'not set (R)'}"
        self._body.update(render_page(shell))
        page = shell.active_page
        on_object_detail = isinstance(page, ResourceDetailPage) and page.kind == KIND_OBJECTS
        self._download_input.display = on_object_detail
        # A hidden input must not keep focus, or it would take enter.
        self._download_input.disabled = not on_object_detail
        if on_object_detail and shell.objects.download_target != self._shown_download_target:
            self._shown_download_target = shell.objects.download_target
            self._download_input.value = shell.objects.download_path
        if not on_object_detail and self._download_input.has_focus:
            self.set_focus(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.shell.objects.download(event.value)
        self.set_focus(None)

    def action_move(self, delta: int) -> None:
        self.shell.move_selection(delta)

    def action_confirm(self) -> None:
        self.shell.confirm()

    def action_back(self) -> None:
        if self._download_input is not None and self._download_input.has_focus:
            self.set_focus(None)
            return
        if self.shell.picker is not None:
            self.shell.close_picker()
            return
        self.shell.back()

    def action_left(self) -> None:
        if self._is_costs_list():
            self.shell.costs.collapse_selected()
            return
        self.action_back()

    def action_right(self) -> None:
        if self._is_costs_list():
            self.shell.costs.expand_selected()
            return
        self.shell.forward()

    def action_next_page(self) -> None:
        self.shell.next_page()

    def action_previous_page(self) -> None:
        self.shell.previous_page()

    def action_refresh(self) -> None:
        self.shell.refresh()

    def action_cancel(self) -> None:
        self.shell.cancel_pending()

    def action_start(self) -> None:
        if self._is_list(KIND_INSTANCES):
            self.shell.instances.start_selected()

    def action_stop(self) -> None:
        if self._is_list(KIND_INSTANCES):
            self.shell.instances.stop_selected()

    def action_toggle_all(self) -> None:
        if self._is_costs_list():
            self.shell.costs.toggle_all()

    def action_cycle_range(self) -> None:
        if self._is_costs_list():
            self.shell.costs.cycle_range()

    def action_edit_download(self) -> None:
        page = self.shell.active_page
        if isinstance(page, ResourceDetailPage) and page.kind == KIND_OBJECTS and self._download_input:
            self._download_input.focus()

    def action_region(self) -> None:
        self.shell.open_region_picker()

    def action_profile(self) -> None:
        self.shell.open_profile_picker()

    def _is_list(self, kind: str) -> bool:
        page = self.shell.active_page
        return self.shell.picker is None and isinstance(page, ResourceListPage) and page.kind == kind

    def _is_costs_list(self) -> bool:
        return self._is_list(KIND_COSTS)
