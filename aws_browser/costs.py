from __future__ import annotations
"""Cost aggregation and Cost Explorer time windows."""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
import logging
from typing import Iterable, Optional

from .models import CostRecord, CostSummary, CostTimeRange, ResourceCost, ServiceCost

LOGGER = logging.getLogger(__name__)

DEFAULT_UNIT = "USD"
RANGE_PRESETS = ("24h", "7d", "30d")
RANGE_LABELS = {
    "24h": "Past 24h",
    "7d": "Past 7 days",
    "30d": "Past 30 days",
}
_RANGE_DAYS = {"24h": 1, "7d": 7, "30d": 30}


def parse_amount(raw: object) -> Decimal:
    """Parse a Cost Explorer amount, treating anything unusable as zero."""

    if raw is None or raw == "":
        return Decimal(0)
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    return value


def to_time_range(preset: str, today: date | None = None) -> CostTimeRange:
    if preset not in _RANGE_DAYS:
        raise ValueError(f"Unknown cost range '{preset}'")
    if today is None:
        today = datetime.now(timezone.utc).date()
    end = today + timedelta(days=1)
    start = end - timedelta(days=_RANGE_DAYS[preset])
    granularity = "HOURLY" if preset == "24h" else "DAILY"
    return CostTimeRange(start=start, end=end, granularity=granularity)


def _percent(part: Decimal, whole: Decimal) -> float:
    if not whole:
        return 0.0
    return float(part / whole * 100)


@dataclass
class _ServiceTotals:
    unit: str
    amount: Decimal = Decimal(0)
    children: dict[Optional[str], ResourceCost] = field(default_factory=dict)


def aggregate_costs(
    records: Iterable[CostRecord],
    *,
    last_updated: date | None = None,
) -> CostSummary:
    """Fold flat cost records into a per-service tree.

    Records sharing a ``(service, usage_type)`` pair are summed, services and
    their children are ordered by amount (descending, first-seen order on
    ties) and annotated with percentages. Amounts are :class:`Decimal`, so
    every service equals the sum of its children and the total equals the
    sum of the services.
    """

    services: dict[str, _ServiceTotals] = {}
    current_unit: str | None = None

    for record in records:
        if not record.service:
            continue
        unit = record.unit or current_unit or DEFAULT_UNIT
        if current_unit is not None and unit != current_unit:
            LOGGER.warning(
                "Cost records mix currencies (%s and %s); totals are not converted",
                current_unit,
                unit,
            )
        current_unit = unit

        totals = services.get(record.service)
        if totals is None:
            totals = services[record.service] = _ServiceTotals(unit=unit)
        totals.amount += record.amount

        child = totals.children.get(record.usage_type)
        if child is None:
            child = totals.children[record.usage_type] = ResourceCost(
                id=f"{record.service}:{record.usage_type or 'unknown'}",
                name=record.usage_type or "unknown usage",
                amount=Decimal(0),
                unit=unit,
                usage_type=record.usage_type or None,
            )
        child.amount += record.amount

    service_list = [
        ServiceCost(
            id=name,
            name=name,
            amount=totals.amount,
            unit=totals.unit,
            children=sorted(totals.children.values(), key=lambda c: c.amount, reverse=True),
        )
        for name, totals in services.items()
    ]
    service_list.sort(key=lambda s: s.amount, reverse=True)
    total = sum((service.amount for service in service_list), Decimal(0))

    for service in service_list:
        service.percent_of_total = _percent(service.amount, total)
        for child in service.children:
            child.percent_of_service = _percent(child.amount, service.amount)

    LOGGER.debug("Aggregated %d cost service(s), total %s", len(service_list), total)
    return CostSummary(
        total=total,
        unit=current_unit or DEFAULT_UNIT,
        services=service_list,
        last_updated=last_updated,
    )
