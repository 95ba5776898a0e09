from __future__ import annotations
"""View-agnostic presenter that wraps controller operations."""
from dataclasses import replace
import logging
import threading
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .controller import AwsBrowserController
from .models import Bucket, CostSummary, InstanceStatus, RegionSummary, ResourcePage
from .services import CancelFn, RequestCancelledError
from .settings import AppSettings, SettingsStorage
from .ui_utils import PackageInfo, load_package_info


DispatchFn = Callable[[Callable[[], None]], None]
RunFn = Callable[[Callable[[], None]], None]
SuccessFn = Callable[[object], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def _start_thread(task: Callable[[], None]) -> None:
    threading.Thread(target=task, daemon=True).start()


class BrowserPresenter:
    """Runs background operations and returns results via callbacks.

    ``dispatch`` hands each callback back to the UI loop; ``runner`` decides
    where the blocking call executes (a daemon thread by default).
    """

    def __init__(
        self,
        *,
        controller: AwsBrowserController | None = None,
        settings_storage: SettingsStorage | None = None,
        settings: AppSettings | None = None,
        dispatch: DispatchFn | None = None,
        runner: RunFn | None = None,
    ) -> None:
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = settings if settings is not None else self._settings_storage.load()
        self._controller = controller or AwsBrowserController(
            profile=self._settings.profile,
            region=self._settings.region,
            page_size=self._settings.page_size,
        )
        self._dispatch = dispatch or (lambda func: func())
        self._runner = runner or _start_thread
        self._package_info = load_package_info()

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    @property
    def package_info(self) -> PackageInfo:
        return self._package_info

    @property
    def profile(self) -> str | None:
        return self._controller.profile

    @property
    def region(self) -> str | None:
        return self._controller.region

    def set_dispatch(self, dispatch: DispatchFn) -> None:
        self._dispatch = dispatch

    def update_region(self, region: str) -> bool:
        """Switch region and persist it; returns ``True`` when it changed."""

        changed = self._controller.select_region(region)
        self._settings = replace(self._settings, region=self._controller.region)
        self._settings_storage.save(self._settings)
        return changed

    def update_profile(self, profile: str) -> bool:
        changed = self._controller.select_profile(profile)
        self._settings = replace(self._settings, profile=self._controller.profile)
        self._settings_storage.save(self._settings)
        return changed

    def list_profiles(self) -> list[str]:
        return self._controller.list_profiles()

    def list_regions(
        self,
        *,
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[list[RegionSummary]], None],
        on_error: ErrorFn,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Listing regions")
        self._run(
            "list regions",
            lambda: self._controller.list_regions(cancel_requested=cancel_requested),
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
            on_done=on_done,
        )

    def list_instances(
        self,
        *,
        continuation_token: str | None = None,
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[ResourcePage], None],
        on_error: ErrorFn,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Listing instances (token=%s)", continuation_token)
        self._run(
            "list instances",
            lambda: self._controller.list_instances(
                continuation_token=continuation_token,
                cancel_requested=cancel_requested,
            ),
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
            on_done=on_done,
        )

    def describe_instance_statuses(
        self,
        *,
        instance_ids: list[str],
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[list[InstanceStatus]], None],
        on_error: ErrorFn | None = None,
    ) -> None:
        self._run(
            "describe instance status",
            lambda: self._controller.describe_instance_statuses(
                instance_ids=instance_ids,
                cancel_requested=cancel_requested,
            ),
            on_success=on_success,
            on_error=on_error,
        )

    def change_instance_state(
        self,
        *,
        instance_ids: list[str],
        target_state: str,
        on_success: DoneFn,
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Requesting %s for %s", target_state, ", ".join(instance_ids))
        self._run(
            f"change instance state to {target_state}",
            lambda: self._controller.change_instance_state(
                instance_ids=instance_ids,
                target_state=target_state,
            ),
            on_success=lambda _result: on_success(),
            on_error=on_error,
            on_done=on_done,
        )

    def list_buckets(
        self,
        *,
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[list[Bucket]], None],
        on_error: ErrorFn,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Listing buckets")
        self._run(
            "list buckets",
            lambda: self._controller.list_buckets(cancel_requested=cancel_requested),
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
            on_done=on_done,
        )

    def get_bucket_region(
        self,
        *,
        bucket_name: str,
        on_success: Callable[[str], None],
        on_error: ErrorFn | None = None,
    ) -> None:
        self._run(
            f"resolve region of bucket '{bucket_name}'",
            lambda: self._controller.get_bucket_region(bucket_name=bucket_name),
            on_success=on_success,
            on_error=on_error,
        )

    def list_objects(
        self,
        *,
        bucket_name: str,
        prefix: str = "",
        continuation_token: str | None = None,
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[ResourcePage], None],
        on_error: ErrorFn,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Listing objects for bucket '%s' prefix '%s'", bucket_name, prefix)
        self._run(
            f"list objects in '{bucket_name}'",
            lambda: self._controller.list_objects(
                bucket_name=bucket_name,
                prefix=prefix,
                continuation_token=continuation_token,
                cancel_requested=cancel_requested,
            ),
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
            on_done=on_done,
        )

    def download_object(
        self,
        *,
        bucket_name: str,
        key: str,
        destination: str,
        on_progress: Callable[[int], None] | None = None,
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[str], None],
        on_error: ErrorFn,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        progress_callback = None
        if on_progress:
            progress_callback = lambda total: self._dispatch(lambda: on_progress(total))

        LOGGER.debug("Downloading s3://%s/%s to %s", bucket_name, key, destination)
        self._run(
            f"download '{key}'",
            lambda: self._controller.download_object(
                bucket_name=bucket_name,
                key=key,
                destination=destination,
                progress_callback=progress_callback,
                cancel_requested=cancel_requested,
            ),
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
            on_done=on_done,
        )

    def fetch_cost_summary(
        self,
        *,
        preset: str,
        cancel_requested: Optional[CancelFn] = None,
        on_success: Callable[[CostSummary], None],
        on_error: ErrorFn,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        LOGGER.debug("Fetching cost summary for %s", preset)
        self._run(
            f"fetch costs for {preset}",
            lambda: self._controller.fetch_cost_summary(
                preset=preset,
                cancel_requested=cancel_requested,
            ),
            on_success=on_success,
            on_error=on_error,
            on_cancelled=on_cancelled,
            on_done=on_done,
        )

    def _run(
        self,
        description: str,
        call: Callable[[], object],
        *,
        on_success: SuccessFn,
        on_error: ErrorFn | None = None,
        on_cancelled: DoneFn | None = None,
        on_done: DoneFn | None = None,
    ) -> None:
        def task() -> None:
            try:
                result = call()
            except RequestCancelledError:
                LOGGER.debug("Cancelled: %s", description)
                if on_cancelled:
                    self._dispatch(on_cancelled)
            except (BotoCoreError, ClientError) as exc:
                LOGGER.exception("AWS error during %s", description)
                if on_error:
                    message = _format_error(exc)
                    self._dispatch(lambda: on_error(message))
            except Exception as exc:
                LOGGER.exception("Unexpected error during %s", description)
                if on_error:
                    message = _format_error(exc)
                    self._dispatch(lambda: on_error(message))
            else:
                self._dispatch(lambda: on_success(result))
            finally:
                if on_done:
                    self._dispatch(on_done)

        self._runner(task)
