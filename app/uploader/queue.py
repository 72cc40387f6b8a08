"""Concurrency-limited upload queue.

Items move ``pending -> uploading -> done | error``. After every transition
the queue re-runs admission, promoting the oldest pending items until
``concurrency_limit`` transfers are in flight, so the queue drains itself
without a scheduler loop. Failed items stay listed until retried or removed.
"""
import asyncio
import json
import logging
from fnmatch import fnmatch
from typing import Callable, Iterable, Protocol

from app.uploader.cancel import CancelToken, UploadCancelled
from app.uploader.models import LocalFile, UploadedFile, UploadItem, UploadStatus

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT = 3


class Transfer(Protocol):
    async def upload(
        self,
        file: LocalFile,
        on_progress: Callable[[int], None] | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadedFile: ...


def format_bytes(num: int) -> str:
    value = float(num)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def accepts(file: LocalFile, accepted_types: list[str] | None) -> bool:
    """Match a file against picker-style filters such as ``image/*``, ``.pdf`` or ``application/pdf``."""
    if not accepted_types:
        return True
    for pattern in accepted_types:
        pattern = pattern.strip().lower()
        if pattern.startswith("."):
            if file.name.lower().endswith(pattern):
                return True
        elif fnmatch(file.content_type.lower(), pattern):
            return True
    return False


class UploadQueue:
    def __init__(
        self,
        transfer: Transfer,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        accepted_types: list[str] | str | None = None,
        allow_multiple: bool = True,
        on_complete: Callable[[list[UploadedFile]], None] | None = None,
    ):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        if isinstance(accepted_types, str):
            accepted_types = [item for item in accepted_types.split(",") if item.strip()]

        self.transfer = transfer
        self.concurrency_limit = concurrency_limit
        self.accepted_types = accepted_types
        self.allow_multiple = allow_multiple
        self.on_complete = on_complete

        self.items: list[UploadItem] = []
        self._tasks: dict[str, asyncio.Task] = {}
        self._tokens: dict[str, CancelToken] = {}
        self._idle = asyncio.Event()
        self._idle.set()

    # -- queries -----------------------------------------------------------

    def get(self, item_id: str) -> UploadItem | None:
        return next((item for item in self.items if item.id == item_id), None)

    def with_status(self, status: UploadStatus) -> list[UploadItem]:
        return [item for item in self.items if item.status == status]

    def counts(self) -> dict[str, int]:
        return {status.value: len(self.with_status(status)) for status in UploadStatus}

    @property
    def done_items(self) -> list[UploadItem]:
        return self.with_status(UploadStatus.done)

    @property
    def done_count(self) -> int:
        return len(self.done_items)

    @property
    def done_bytes(self) -> int:
        return sum(item.result.size for item in self.done_items)

    def summary(self) -> str:
        noun = "file" if self.done_count == 1 else "files"
        return f"{self.done_count} {noun} • {format_bytes(self.done_bytes)}"

    def uploaded_results(self) -> list[UploadedFile]:
        return [item.result for item in self.done_items]

    def uploaded_urls(self) -> str:
        """JSON array of uploaded URLs, as posted in the form's hidden field."""
        return json.dumps([result.url for result in self.uploaded_results()])

    # -- user actions ------------------------------------------------------

    def add_files(self, files: Iterable[LocalFile]) -> list[UploadItem]:
        chosen = [file for file in files if accepts(file, self.accepted_types)]
        if not self.allow_multiple and chosen:
            chosen = chosen[:1]
            for item in list(self.items):
                self.remove(item.id)

        added = []
        for file in chosen:
            item = UploadItem(file=file)
            if file.is_image and file.path is not None:
                item.preview = str(file.path)
            self.items.append(item)
            added.append(item)

        if added:
            logger.debug("Queued %s file(s)", len(added))
        self._admit()
        return added

    def retry(self, item_id: str) -> bool:
        item = self.get(item_id)
        if not item or item.status != UploadStatus.error:
            return False
        item.status = UploadStatus.pending
        item.error = None
        item.progress = 0
        self._admit()
        return True

    def remove(self, item_id: str) -> bool:
        item = self.get(item_id)
        if not item:
            return False
        self.items.remove(item)

        token = self._tokens.pop(item_id, None)
        if token:
            token.cancel()
        task = self._tasks.pop(item_id, None)
        if task and not task.done():
            task.cancel()

        self._admit()
        return True

    async def wait(self) -> None:
        """Block until nothing is pending or uploading."""
        await self._idle.wait()

    async def close(self) -> None:
        """Cancel every in-flight transfer and forget all items."""
        tasks = list(self._tasks.values())
        for item in list(self.items):
            self.remove(item.id)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # -- admission ---------------------------------------------------------

    def _admit(self) -> None:
        uploading = len(self.with_status(UploadStatus.uploading))
        free = self.concurrency_limit - uploading
        if free > 0:
            for item in self.with_status(UploadStatus.pending)[:free]:
                self._start(item)
        self._refresh_idle()

    def _refresh_idle(self) -> None:
        busy = any(item.status in (UploadStatus.pending, UploadStatus.uploading) for item in self.items)
        if busy:
            self._idle.clear()
        else:
            self._idle.set()

    def _start(self, item: UploadItem) -> None:
        item.status = UploadStatus.uploading
        item.progress = 0
        item.error = None
        token = CancelToken()
        self._tokens[item.id] = token
        self._tasks[item.id] = asyncio.create_task(self._run(item, token))

    def _is_tracked(self, item: UploadItem) -> bool:
        return self.get(item.id) is item

    async def _run(self, item: UploadItem, token: CancelToken) -> None:
        def on_progress(percent: int) -> None:
            if self._is_tracked(item) and item.status == UploadStatus.uploading:
                item.progress = max(0, min(100, int(percent)))

        try:
            result = await self.transfer.upload(item.file, on_progress, token)
        except UploadCancelled:
            logger.debug("Upload of %s cancelled", item.file.name)
            return
        except Exception as exc:
            if self._is_tracked(item):
                item.status = UploadStatus.error
                item.error = str(exc) or "Upload failed"
                logger.info("Upload of %s failed: %s", item.file.name, item.error)
        else:
            if self._is_tracked(item):
                item.status = UploadStatus.done
                item.progress = 100
                item.result = result
                self._notify_complete()
        finally:
            if self._tasks.get(item.id) is asyncio.current_task():
                self._tasks.pop(item.id, None)
                self._tokens.pop(item.id, None)
            self._admit()

    def _notify_complete(self) -> None:
        if not self.on_complete:
            return
        try:
            self.on_complete(self.uploaded_results())
        except Exception:
            logger.exception("Upload completion callback failed")
