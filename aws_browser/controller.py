from __future__ import annotations
"""Controller layer binding the current profile/region to service calls."""

from typing import Callable, Optional

from .models import Bucket, CostSummary, InstanceStatus, RegionSummary, ResourcePage
from .services import AwsBrowserService, CancelFn


class AwsBrowserController:
    """Coordinates user actions with the :class:`AwsBrowserService`."""

    def __init__(
        self,
        service: AwsBrowserService | None = None,
        *,
        profile: str | None = None,
        region: str | None = None,
        page_size: int = 50,
    ):
        self._service = service or AwsBrowserService()
        self._profile = profile
        self._region = region
        self._page_size = max(int(page_size), 1)

    @property
    def profile(self) -> str | None:
        return self._profile

    @property
    def region(self) -> str | None:
        return self._region

    @property
    def page_size(self) -> int:
        return self._page_size

    def select_profile(self, profile: str | None) -> bool:
        """Switch credentials; returns ``True`` when the profile changed."""

        profile = profile or None
        if profile == self._profile:
            return False
        self._profile = profile
        return True

    def select_region(self, region: str | None) -> bool:
        region = region or None
        if region == self._region:
            return False
        self._region = region
        return True

    def list_profiles(self) -> list[str]:
        return self._service.list_profiles()

    def list_regions(self, *, cancel_requested: Optional[CancelFn] = None) -> list[RegionSummary]:
        return self._service.list_regions(cancel_requested=cancel_requested, **self._params())

    def list_instances(
        self,
        *,
        continuation_token: str | None = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> ResourcePage:
        return self._service.list_instances(
            page_size=self._page_size,
            continuation_token=continuation_token,
            cancel_requested=cancel_requested,
            **self._params(),
        )

    def describe_instance_statuses(
        self,
        *,
        instance_ids: list[str],
        cancel_requested: Optional[CancelFn] = None,
    ) -> list[InstanceStatus]:
        return self._service.describe_instance_statuses(
            instance_ids=instance_ids,
            cancel_requested=cancel_requested,
            **self._params(),
        )

    def change_instance_state(self, *, instance_ids: list[str], target_state: str) -> None:
        self._service.change_instance_state(
            instance_ids=instance_ids,
            target_state=target_state,
            **self._params(),
        )

    def list_buckets(self, *, cancel_requested: Optional[CancelFn] = None) -> list[Bucket]:
        return self._service.list_buckets(cancel_requested=cancel_requested, **self._params())

    def get_bucket_region(self, *, bucket_name: str) -> str:
        return self._service.get_bucket_region(bucket_name=bucket_name, **self._params())

    def list_objects(
        self,
        *,
        bucket_name: str,
        prefix: str = "",
        continuation_token: str | None = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> ResourcePage:
        return self._service.list_objects(
            bucket_name=bucket_name,
            prefix=prefix,
            page_size=self._page_size,
            continuation_token=continuation_token,
            cancel_requested=cancel_requested,
            **self._params(),
        )

    def download_object(
        self,
        *,
        bucket_name: str,
        key: str,
        destination: str,
        progress_callback: Optional[Callable[[int], None]] = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> str:
        return self._service.download_object(
            bucket_name=bucket_name,
            key=key,
            destination=destination,
            progress_callback=progress_callback,
            cancel_requested=cancel_requested,
            **self._params(),
        )

    def fetch_cost_summary(
        self,
        *,
        preset: str,
        cancel_requested: Optional[CancelFn] = None,
    ) -> CostSummary:
        return self._service.fetch_cost_summary(
            profile=self._profile,
            preset=preset,
            cancel_requested=cancel_requested,
        )

    def _params(self) -> dict[str, str | None]:
        return {"profile": self._profile, "region": self._region}
