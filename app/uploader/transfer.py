"""Client side of the delegated upload protocol.

A transfer first asks the API for an upload authorization, then pushes the
bytes straight to object storage using the presigned URL(s) it got back.
Files above the multipart threshold are sent part by part and stitched
together with a final ``/api/blob/upload/complete`` call.
"""
import asyncio
import logging
from typing import AsyncIterator, Callable

import httpx

from app.uploader.cancel import CancelToken, UploadCancelled
from app.uploader.models import LocalFile, UploadedFile

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 256 * 1024
ProgressCallback = Callable[[int], None]


class UploadError(Exception):
    """Human readable transfer failure shown next to the item."""


class _Progress:
    def __init__(self, total: int, callback: ProgressCallback | None):
        self.total = max(total, 1)
        self.sent = 0
        self.callback = callback

    def advance(self, count: int) -> None:
        self.sent += count
        if self.callback:
            self.callback(min(100, int(self.sent * 100 / self.total)))


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"{fallback} (HTTP {response.status_code})"
    if isinstance(payload, dict) and payload.get("message"):
        return payload["message"]
    return f"{fallback} (HTTP {response.status_code})"


def _data(response: httpx.Response, fallback: str) -> dict:
    try:
        data = response.json()["data"]
    except (ValueError, KeyError, TypeError):
        raise UploadError(fallback)
    if not isinstance(data, dict):
        raise UploadError(fallback)
    return data


class BlobTransfer:
    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = 60,
    ):
        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size
        self._client = client
        self._timeout = timeout

    async def upload(
        self,
        file: LocalFile,
        on_progress: ProgressCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> UploadedFile:
        cancel = cancel or CancelToken()
        progress = _Progress(file.size, on_progress)

        if self._client is not None:
            return await self._upload(self._client, file, progress, cancel)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await self._upload(client, file, progress, cancel)

    async def _upload(
        self,
        client: httpx.AsyncClient,
        file: LocalFile,
        progress: _Progress,
        cancel: CancelToken,
    ) -> UploadedFile:
        try:
            grant = await self._authorize(client, file)
            cancel.raise_if_cancelled()
            if grant.get("multipart"):
                url = await self._upload_parts(client, file, grant, progress, cancel)
            else:
                await self._put(client, grant["url"], file, 0, file.size, progress, cancel,
                                content_type=file.content_type)
                url = grant["public_url"]
        except httpx.RequestError as exc:
            logger.warning("Upload of %s interrupted: %s", file.name, exc)
            raise UploadError("Upload failed. The network was interrupted.") from exc

        return UploadedFile(
            url=url,
            pathname=grant.get("pathname") or grant["key"],
            size=file.size,
            content_type=file.content_type,
            filename=file.name,
        )

    async def _authorize(self, client: httpx.AsyncClient, file: LocalFile) -> dict:
        response = await client.post(
            f"{self.base_url}/api/blob/upload",
            json={"filename": file.name, "content_type": file.content_type, "size": file.size},
        )
        if response.is_error:
            raise UploadError(_error_message(response, "Upload was not authorized"))
        return _data(response, "Upload was not authorized")

    async def _stream(
        self, file: LocalFile, start: int, end: int, progress: _Progress, cancel: CancelToken
    ) -> AsyncIterator[bytes]:
        for chunk in file.iter_chunks(start, end, self.chunk_size):
            cancel.raise_if_cancelled()
            yield chunk
            progress.advance(len(chunk))

    async def _put(
        self,
        client: httpx.AsyncClient,
        url: str,
        file: LocalFile,
        start: int,
        end: int,
        progress: _Progress,
        cancel: CancelToken,
        content_type: str | None = None,
    ) -> httpx.Response:
        # Explicit length keeps httpx from switching to chunked encoding, which presigned PUTs reject
        headers = {"Content-Length": str(end - start)}
        if content_type:
            headers["Content-Type"] = content_type
        response = await client.put(url, content=self._stream(file, start, end, progress, cancel), headers=headers)
        if response.is_error:
            raise UploadError(_error_message(response, "Storage rejected the upload"))
        return response

    async def _upload_parts(
        self,
        client: httpx.AsyncClient,
        file: LocalFile,
        grant: dict,
        progress: _Progress,
        cancel: CancelToken,
    ) -> str:
        part_size = grant["part_size"]
        completed = []
        try:
            for part in grant["parts"]:
                cancel.raise_if_cancelled()
                start = (part["part_number"] - 1) * part_size
                end = min(start + part_size, file.size)
                response = await self._put(client, part["url"], file, start, end, progress, cancel)
                completed.append({"part_number": part["part_number"], "etag": response.headers.get("ETag", "")})
        except (UploadCancelled, UploadError, httpx.RequestError, asyncio.CancelledError):
            # A removed item cancels this task; the abort still has to reach storage
            await asyncio.shield(self._abort(client, grant))
            raise

        response = await client.post(
            f"{self.base_url}/api/blob/upload/complete",
            json={"key": grant["key"], "upload_id": grant["upload_id"], "parts": completed},
        )
        if response.is_error:
            raise UploadError(_error_message(response, "Upload could not be completed"))
        return _data(response, "Upload could not be completed")["url"]

    async def _abort(self, client: httpx.AsyncClient, grant: dict) -> None:
        try:
            await client.post(
                f"{self.base_url}/api/blob/upload/abort",
                json={"key": grant["key"], "upload_id": grant["upload_id"]},
            )
        except httpx.HTTPError:
            logger.warning("Could not abort multipart upload %s", grant["key"], exc_info=True)
