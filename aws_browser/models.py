from __future__ import annotations
"""Data models for pages, listings and cost summaries."""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

KIND_INSTANCES = "instances"
KIND_OBJECTS = "objects"
KIND_COSTS = "costs"


@dataclass(frozen=True)
class HomePage:
    """The service menu shown at startup."""


@dataclass(frozen=True)
class ResourceListPage:
    """A listing of one resource kind.

    For objects, ``container`` is the bucket being browsed (``None`` for the
    bucket list) and ``prefix`` the folder inside it.
    """

    kind: str
    container: Optional[str] = None
    prefix: str = ""


@dataclass(frozen=True)
class ResourceDetailPage:
    """Details of a single item opened from a listing."""

    kind: str
    item: object
    extra: Optional[str] = None


Page = Union[HomePage, ResourceListPage, ResourceDetailPage]


@dataclass(frozen=True)
class Instance:
    id: str
    name: Optional[str] = None
    state: Optional[str] = None
    instance_type: Optional[str] = None
    availability_zone: Optional[str] = None
    launched_at: Optional[datetime] = None
    public_ip: Optional[str] = None
    private_ip: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class InstanceStatus:
    id: str
    instance_status: Optional[str] = None
    system_status: Optional[str] = None


@dataclass(frozen=True)
class Bucket:
    name: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ObjectFile:
    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    storage_class: Optional[str] = None


@dataclass(frozen=True)
class ObjectFolder:
    prefix: str


@dataclass(frozen=True)
class CostRecord:
    """One billed-usage row as returned by Cost Explorer."""

    service: str
    usage_type: Optional[str]
    amount: Decimal
    unit: Optional[str] = None


ResourceItem = Union[Instance, Bucket, ObjectFile, ObjectFolder, CostRecord]


@dataclass
class ResourcePage:
    """A single page of a paginated listing."""

    items: list = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass(frozen=True)
class RegionSummary:
    name: str
    endpoint: Optional[str] = None


@dataclass
class ResourceCost:
    id: str
    name: str
    amount: Decimal
    unit: str
    percent_of_service: float = 0.0
    usage_type: Optional[str] = None


@dataclass
class ServiceCost:
    id: str
    name: str
    amount: Decimal
    unit: str
    percent_of_total: float = 0.0
    children: list[ResourceCost] = field(default_factory=list)


@dataclass
class CostSummary:
    total: Decimal
    unit: str
    services: list[ServiceCost] = field(default_factory=list)
    last_updated: Optional[date] = None


@dataclass(frozen=True)
class CostTimeRange:
    """Cost Explorer window; ``end`` is exclusive."""

    start: date
    end: date
    granularity: str
