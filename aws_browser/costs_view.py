from __future__ import annotations
"""Cost Explorer summary rendered as an expandable service tree."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .costs import RANGE_LABELS, RANGE_PRESETS
from .fetch import FetchTicket
from .models import KIND_COSTS, CostSummary, Page
from .views import ResourceView

AUTO_EXPANDED_SERVICES = 5
DEFAULT_RANGE_INDEX = 1


@dataclass(frozen=True)
class CostRow:
    id: str
    kind: str
    name: str
    amount: Decimal
    unit: str
    percent: float
    level: int
    parent_id: Optional[str] = None


class CostsView(ResourceView):
    kind = KIND_COSTS

    def __init__(self, presenter, *, on_change=None) -> None:
        super().__init__(presenter, on_change=on_change)
        self.range_index = DEFAULT_RANGE_INDEX
        self.summary: Optional[CostSummary] = None
        self.expanded: set[str] = set()

    @property
    def range_preset(self) -> str:
        return RANGE_PRESETS[self.range_index]

    @property
    def range_label(self) -> str:
        return RANGE_LABELS[self.range_preset]

    @property
    def rows(self) -> list[CostRow]:
        return list(self.items)

    def enter(self, page: Page) -> None:
        if self.summary is None and not self.loading:
            self.refresh()

    def refresh(self) -> None:
        ticket = self._begin()
        preset = self.range_preset
        self._presenter.fetch_cost_summary(
            preset=preset,
            cancel_requested=ticket.cancel_requested,
            on_success=lambda summary: self._summary_loaded(ticket, summary),
            on_error=lambda message: self._fail(ticket, message),
            on_done=lambda: self._done(ticket),
        )

    def cycle_range(self) -> None:
        self.range_index = (self.range_index + 1) % len(RANGE_PRESETS)
        self.refresh()

    def expand_selected(self) -> None:
        row = self.selected_item
        if row is None or row.kind != "service" or row.id in self.expanded:
            return
        self.expanded.add(row.id)
        self._rebuild_rows()

    def collapse_selected(self) -> None:
        row = self.selected_item
        if row is None:
            return
        service_id = row.id if row.kind == "service" else row.parent_id
        if service_id not in self.expanded:
            return
        self.expanded.discard(service_id)
        self._rebuild_rows()
        for index, candidate in enumerate(self.items):
            if candidate.id == service_id:
                self.select(index)
                break

    def toggle_all(self) -> None:
        if self.summary is None:
            return
        if len(self.expanded) < len(self.summary.services):
            self.expanded = {service.id for service in self.summary.services}
        else:
            self.expanded = set()
        self._rebuild_rows()

    def reset(self) -> None:
        super().reset()
        self.summary = None
        self.expanded = set()

    def _summary_loaded(self, ticket: FetchTicket, summary: CostSummary) -> None:
        if not self._is_current(ticket):
            return
        self.summary = summary
        self.expanded = {service.id for service in summary.services[:AUTO_EXPANDED_SERVICES]}
        self.replace_items(self._build_rows(), reset_selection=True)

    def _rebuild_rows(self) -> None:
        self.replace_items(self._build_rows())

    def _build_rows(self) -> list[CostRow]:
        if self.summary is None:
            return []
        rows: list[CostRow] = []
        for service in self.summary.services:
            rows.append(
                CostRow(
                    id=service.id,
                    kind="service",
                    name=service.name,
                    amount=service.amount,
                    unit=service.unit,
                    percent=service.percent_of_total,
                    level=0,
                )
            )
            if service.id not in self.expanded:
                continue
            for child in service.children:
                rows.append(
                    CostRow(
                        id=child.id,
                        kind="resource",
                        name=child.name,
                        amount=child.amount,
                        unit=child.unit,
                        percent=child.percent_of_service,
                        level=1,
                        parent_id=service.id,
                    )
                )
        return rows
