from __future__ import annotations
"""S3 bucket and folder browsing plus single-object downloads."""
import logging
from typing import Optional

from .fetch import FetchSession, FetchTicket
from .models import (
    KIND_OBJECTS,
    Bucket,
    ObjectFile,
    ObjectFolder,
    Page,
    ResourceDetailPage,
    ResourceListPage,
    ResourcePage,
)
from .ui_utils import default_download_path, expand_home
from .views import PaginatedView, RegionMemo

LOGGER = logging.getLogger(__name__)

DOWNLOAD_IDLE = "idle"
DOWNLOAD_SAVING = "saving"
DOWNLOAD_DONE = "done"


class ObjectsView(PaginatedView):
    """Lists buckets when no bucket is open, else one page of a folder."""

    kind = KIND_OBJECTS

    def __init__(self, presenter, *, region_memo: RegionMemo | None = None, on_change=None) -> None:
        super().__init__(presenter, on_change=on_change)
        self.region_memo = region_memo if region_memo is not None else RegionMemo()
        self.bucket: Optional[str] = None
        self.prefix = ""
        self._download_session = FetchSession()
        self.download_target: Optional[tuple[str, str]] = None
        self.download_path = ""
        self.download_status = DOWNLOAD_IDLE
        self.download_error: Optional[str] = None
        self.download_progress = 0

    @property
    def location(self) -> tuple[Optional[str], str]:
        return (self.bucket, self.prefix)

    @property
    def location_label(self) -> str:
        if self.bucket is None:
            return "/"
        return f"{self.bucket}:{self.prefix or '/'}"

    @property
    def bucket_region(self) -> Optional[str]:
        return self.region_memo.get(self.bucket)

    def enter(self, page: Page) -> None:
        if not isinstance(page, ResourceListPage):
            return
        location = (page.container, page.prefix if page.container else "")
        if location != self.location:
            self._session.invalidate()
            self.bucket, self.prefix = location
            self._cursor.reset()
            self.page_index = 0
            self.loaded = False
            self.loading = False
            self.items = []
            self.selected = 0
        if self.bucket is not None:
            self.ensure_bucket_region(self.bucket)
        if not self.loaded and not self.loading:
            self.refresh()
        else:
            self._changed()

    def target_page(self) -> Optional[Page]:
        item = self.selected_item
        if isinstance(item, Bucket):
            return ResourceListPage(KIND_OBJECTS, container=item.name)
        if isinstance(item, ObjectFolder):
            return ResourceListPage(KIND_OBJECTS, container=self.bucket, prefix=item.prefix)
        if isinstance(item, ObjectFile):
            return ResourceDetailPage(KIND_OBJECTS, item, extra=self.bucket)
        return None

    def ensure_bucket_region(self, bucket: str) -> None:
        if not self.region_memo.begin_lookup(bucket):
            return
        self._presenter.get_bucket_region(
            bucket_name=bucket,
            on_success=lambda region: self._region_resolved(bucket, region),
            on_error=lambda message: self._region_failed(bucket, message),
        )

    def open_detail(self, bucket: str, item: ObjectFile) -> None:
        target = (bucket, item.key)
        if self.download_target == target:
            return
        self._download_session.invalidate()
        self.download_target = target
        self.download_path = default_download_path(bucket, item.key)
        self.download_status = DOWNLOAD_IDLE
        self.download_error = None
        self.download_progress = 0
        self.ensure_bucket_region(bucket)

    def download(self, destination: str | None = None) -> bool:
        if self.download_target is None or self.download_status == DOWNLOAD_SAVING:
            return False
        path = (destination if destination is not None else self.download_path).strip()
        if not path:
            self.download_error = "Enter a destination path first."
            self._changed()
            return False
        bucket, key = self.download_target
        ticket = self._download_session.begin()
        self.download_path = path
        self.download_status = DOWNLOAD_SAVING
        self.download_error = None
        self.download_progress = 0
        self._changed()
        self._presenter.download_object(
            bucket_name=bucket,
            key=key,
            destination=expand_home(path),
            on_progress=lambda total: self._download_progressed(ticket, total),
            cancel_requested=ticket.cancel_requested,
            on_success=lambda saved: self._download_finished(ticket, saved),
            on_error=lambda message: self._download_failed(ticket, message),
            on_cancelled=lambda: self._download_cancelled(ticket),
        )
        return True

    def cancel_download(self) -> None:
        if self.download_status != DOWNLOAD_SAVING:
            return
        self._download_session.invalidate()
        self.download_status = DOWNLOAD_IDLE
        self._changed()

    def reset(self) -> None:
        super().reset()
        self.bucket = None
        self.prefix = ""
        self._download_session.invalidate()
        self.download_target = None
        self.download_status = DOWNLOAD_IDLE
        self.download_error = None

    def _request_page(self, ticket: FetchTicket, index: int, token: Optional[str]) -> None:
        if self.bucket is None:
            self._presenter.list_buckets(
                cancel_requested=ticket.cancel_requested,
                on_success=lambda buckets: self._page_loaded(ticket, index, ResourcePage(items=buckets)),
                on_error=lambda message: self._fail(ticket, message),
                on_done=lambda: self._done(ticket),
            )
            return
        self._presenter.list_objects(
            bucket_name=self.bucket,
            prefix=self.prefix,
            continuation_token=token,
            cancel_requested=ticket.cancel_requested,
            on_success=lambda page: self._page_loaded(ticket, index, page),
            on_error=lambda message: self._fail(ticket, message),
            on_done=lambda: self._done(ticket),
        )

    def _region_resolved(self, bucket: str, region: str) -> None:
        if self.region_memo.remember(bucket, region):
            self._changed()

    def _region_failed(self, bucket: str, message: str) -> None:
        LOGGER.debug("Could not resolve region of bucket '%s': %s", bucket, message)
        self.region_memo.abandon_lookup(bucket)

    def _download_progressed(self, ticket: FetchTicket, total: int) -> None:
        if not self._download_session.is_current(ticket):
            return
        self.download_progress = total
        self._changed()

    def _download_finished(self, ticket: FetchTicket, saved: str) -> None:
        if not self._download_session.is_current(ticket):
            return
        self.download_status = DOWNLOAD_DONE
        self._changed()

    def _download_failed(self, ticket: FetchTicket, message: str) -> None:
        if not self._download_session.is_current(ticket):
            return
        self.download_status = DOWNLOAD_IDLE
        self.download_error = message
        self._changed()

    def _download_cancelled(self, ticket: FetchTicket) -> None:
        if not self._download_session.is_current(ticket):
            return
        self.download_status = DOWNLOAD_IDLE
        self._changed()
