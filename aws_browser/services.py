from __future__ import annotations
"""Business logic for talking to EC2, S3 and Cost Explorer."""
import logging
import os
import threading
from typing import Callable, Optional

import boto3
from botocore.config import Config

from .costs import aggregate_costs, parse_amount, to_time_range
from .models import (
    Bucket,
    CostRecord,
    CostSummary,
    CostTimeRange,
    Instance,
    InstanceStatus,
    ObjectFile,
    ObjectFolder,
    RegionSummary,
    ResourcePage,
)

LOGGER = logging.getLogger(__name__)


class RequestCancelledError(RuntimeError):
    """Raised when the caller withdrew interest in a request."""


CancelFn = Callable[[], bool]

PAGE_SIZE = 50
# DescribeInstances rejects MaxResults outside this range.
EC2_MIN_RESULTS = 5
EC2_MAX_RESULTS = 1000
COST_EXPLORER_REGION = "us-east-1"
TARGET_STATES = ("running", "stopped")


def _default_client_factory(service_name: str, *, profile: str | None, region: str | None):
    session = boto3.Session(profile_name=profile, region_name=region)
    config = Config(connect_timeout=5, read_timeout=10, retries={"max_attempts": 3})
    return session.client(service_name, config=config)


def _check_cancelled(cancel_requested: Optional[CancelFn]) -> None:
    if cancel_requested and cancel_requested():
        raise RequestCancelledError("Request cancelled")


class AwsBrowserService:
    """Encapsulates AWS calls independent of any UI technology."""

    def __init__(
        self,
        client_factory: Callable[..., object] | None = None,
        profiles_provider: Callable[[], list[str]] | None = None,
    ):
        self._client_factory = client_factory or _default_client_factory
        self._profiles_provider = profiles_provider or (
            lambda: list(boto3.Session().available_profiles)
        )
        self._clients: dict[tuple[str, str, str], object] = {}
        self._clients_lock = threading.Lock()

    def list_profiles(self) -> list[str]:
        """Return the locally configured credential profiles."""

        return sorted(self._profiles_provider())

    def list_instances(
        self,
        *,
        profile: str | None,
        region: str | None,
        page_size: int = PAGE_SIZE,
        continuation_token: str | None = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> ResourcePage:
        """Return one page of EC2 instances."""

        _check_cancelled(cancel_requested)
        client = self._client("ec2", profile, region)
        params: dict[str, object] = {
            "MaxResults": max(EC2_MIN_RESULTS, min(page_size, EC2_MAX_RESULTS)),
        }
        if continuation_token:
            params["NextToken"] = continuation_token
        response = client.describe_instances(**params)
        _check_cancelled(cancel_requested)

        items = [
            _to_instance(instance)
            for reservation in response.get("Reservations", [])
            for instance in reservation.get("Instances", [])
        ]
        return ResourcePage(items=items, next_token=response.get("NextToken") or None)

    def describe_instance_statuses(
        self,
        *,
        profile: str | None,
        region: str | None,
        instance_ids: list[str],
        cancel_requested: Optional[CancelFn] = None,
    ) -> list[InstanceStatus]:
        """Return status checks for the given instances."""

        if not instance_ids:
            return []
        _check_cancelled(cancel_requested)
        client = self._client("ec2", profile, region)
        response = client.describe_instance_status(
            InstanceIds=list(instance_ids),
            IncludeAllInstances=True,
        )
        _check_cancelled(cancel_requested)
        return [
            InstanceStatus(
                id=status.get("InstanceId") or "unknown",
                instance_status=(status.get("InstanceStatus") or {}).get("Status"),
                system_status=(status.get("SystemStatus") or {}).get("Status"),
            )
            for status in response.get("InstanceStatuses", [])
        ]

    def change_instance_state(
        self,
        *,
        profile: str | None,
        region: str | None,
        instance_ids: list[str],
        target_state: str,
    ) -> None:
        """Forward a start or stop request."""

        if target_state not in TARGET_STATES:
            raise ValueError("target_state must be either 'running' or 'stopped'")
        client = self._client("ec2", profile, region)
        if target_state == "running":
            client.start_instances(InstanceIds=list(instance_ids))
        else:
            client.stop_instances(InstanceIds=list(instance_ids))

    def list_regions(
        self,
        *,
        profile: str | None,
        region: str | None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> list[RegionSummary]:
        _check_cancelled(cancel_requested)
        client = self._client("ec2", profile, region)
        response = client.describe_regions(AllRegions=True)
        regions = [
            RegionSummary(name=entry.get("RegionName") or "unknown", endpoint=entry.get("Endpoint"))
            for entry in response.get("Regions", [])
        ]
        return sorted(regions, key=lambda r: r.name)

    def list_buckets(
        self,
        *,
        profile: str | None,
        region: str | None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> list[Bucket]:
        """Return the available buckets sorted by name."""

        _check_cancelled(cancel_requested)
        client = self._client("s3", profile, region)
        response = client.list_buckets()
        _check_cancelled(cancel_requested)
        buckets = [
            Bucket(name=bucket.get("Name") or "unknown", created_at=bucket.get("CreationDate"))
            for bucket in response.get("Buckets", [])
        ]
        return sorted(buckets, key=lambda b: b.name)

    def get_bucket_region(
        self,
        *,
        profile: str | None,
        region: str | None,
        bucket_name: str,
    ) -> str:
        client = self._client("s3", profile, region)
        response = client.get_bucket_location(Bucket=bucket_name)
        location = response.get("LocationConstraint") or "us-east-1"
        # Legacy alias still returned for buckets created in Ireland long ago.
        if location == "EU":
            location = "eu-west-1"
        return location

    def list_objects(
        self,
        *,
        profile: str | None,
        region: str | None,
        bucket_name: str,
        prefix: str = "",
        page_size: int = PAGE_SIZE,
        continuation_token: str | None = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> ResourcePage:
        """Return one page of folders and files directly under ``prefix``."""

        _check_cancelled(cancel_requested)
        client = self._client("s3", profile, region)
        list_params: dict[str, object] = {
            "Bucket": bucket_name,
            "MaxKeys": max(page_size, 1),
            "Delimiter": "/",
        }
        if prefix:
            list_params["Prefix"] = prefix
        if continuation_token:
            list_params["ContinuationToken"] = continuation_token
        response = client.list_objects_v2(**list_params)
        _check_cancelled(cancel_requested)

        folders = [
            ObjectFolder(prefix=common.get("Prefix") or "")
            for common in response.get("CommonPrefixes", [])
        ]
        files = [
            ObjectFile(
                key=obj.get("Key") or "",
                size=obj.get("Size"),
                last_modified=obj.get("LastModified"),
                storage_class=obj.get("StorageClass"),
            )
            for obj in response.get("Contents", [])
        ]
        next_token = None
        if response.get("IsTruncated", False):
            next_token = response.get("NextContinuationToken") or None
        return ResourcePage(items=[*folders, *files], next_token=next_token)

    def download_object(
        self,
        *,
        profile: str | None,
        region: str | None,
        bucket_name: str,
        key: str,
        destination: str,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> str:
        """Download an S3 object to ``destination`` and return the path."""

        _check_cancelled(cancel_requested)
        parent = os.path.dirname(destination)
        if parent:
            os.makedirs(parent, exist_ok=True)
        client = self._client("s3", profile, region)
        callback = self._build_transfer_callback(progress_callback, cancel_requested)
        client.download_file(bucket_name, key, destination, Callback=callback)
        return destination

    def fetch_cost_records(
        self,
        *,
        profile: str | None,
        time_range: CostTimeRange,
        cancel_requested: Optional[CancelFn] = None,
    ) -> list[CostRecord]:
        """Return unblended cost rows grouped by service and usage type."""

        client = self._client("ce", profile, COST_EXPLORER_REGION)
        params: dict[str, object] = {
            "TimePeriod": {
                "Start": time_range.start.isoformat(),
                "End": time_range.end.isoformat(),
            },
            "Granularity": time_range.granularity,
            "Metrics": ["UnblendedCost"],
            "GroupBy": [
                {"Type": "DIMENSION", "Key": "SERVICE"},
                {"Type": "DIMENSION", "Key": "USAGE_TYPE"},
            ],
        }
        records: list[CostRecord] = []
        while True:
            _check_cancelled(cancel_requested)
            response = client.get_cost_and_usage(**params)
            for bucket in response.get("ResultsByTime", []):
                for group in bucket.get("Groups", []):
                    keys = group.get("Keys") or []
                    service_name = keys[0] if keys else None
                    if not service_name:
                        continue
                    usage_type = keys[1] if len(keys) > 1 and keys[1] else None
                    cost = (group.get("Metrics") or {}).get("UnblendedCost") or {}
                    records.append(
                        CostRecord(
                            service=service_name,
                            usage_type=usage_type,
                            amount=parse_amount(cost.get("Amount")),
                            unit=cost.get("Unit"),
                        )
                    )
            next_page = response.get("NextPageToken")
            if not next_page:
                break
            params["NextPageToken"] = next_page
        _check_cancelled(cancel_requested)
        return records

    def fetch_cost_summary(
        self,
        *,
        profile: str | None,
        preset: str,
        cancel_requested: Optional[CancelFn] = None,
    ) -> CostSummary:
        time_range = to_time_range(preset)
        records = self.fetch_cost_records(
            profile=profile,
            time_range=time_range,
            cancel_requested=cancel_requested,
        )
        return aggregate_costs(records, last_updated=time_range.end)

    def _client(self, service_name: str, profile: str | None, region: str | None):
        cache_key = (service_name, profile or "default", region or "default")
        with self._clients_lock:
            client = self._clients.get(cache_key)
            if client is None:
                LOGGER.debug("Creating %s client for %s/%s", service_name, cache_key[1], cache_key[2])
                client = self._client_factory(service_name, profile=profile, region=region)
                self._clients[cache_key] = client
            return client

    def _build_transfer_callback(
        self,
        progress_callback: Optional[Callable[[int], None]],
        cancel_requested: Optional[CancelFn],
    ):
        if not progress_callback and not cancel_requested:
            return None

        transferred = 0

        def _callback(bytes_amount: int) -> None:
            nonlocal transferred
            _check_cancelled(cancel_requested)
            transferred += bytes_amount
            if progress_callback:
                progress_callback(transferred)

        return _callback


def _to_instance(instance: dict) -> Instance:
    tags = {
        tag["Key"]: tag["Value"]
        for tag in instance.get("Tags", [])
        if tag.get("Key") and tag.get("Value")
    }
    return Instance(
        id=instance.get("InstanceId") or "unknown",
        name=tags.get("Name"),
        state=(instance.get("State") or {}).get("Name"),
        instance_type=instance.get("InstanceType"),
        availability_zone=(instance.get("Placement") or {}).get("AvailabilityZone"),
        launched_at=instance.get("LaunchTime"),
        public_ip=instance.get("PublicIpAddress"),
        private_ip=instance.get("PrivateIpAddress"),
        tags=tags,
    )
