import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator


class UploadStatus(str, Enum):
    pending = "pending"
    uploading = "uploading"
    done = "done"
    error = "error"


@dataclass
class LocalFile:
    """A file picked for upload, backed either by a path on disk or by in-memory bytes."""

    name: str
    size: int
    content_type: str = "application/octet-stream"
    path: Path | None = None
    data: bytes | None = None

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "LocalFile":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type or guessed or "application/octet-stream",
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: str | None = None) -> "LocalFile":
        guessed, _ = mimetypes.guess_type(name)
        return cls(
            name=name,
            size=len(data),
            content_type=content_type or guessed or "application/octet-stream",
            data=data,
        )

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    def iter_chunks(self, start: int, end: int, chunk_size: int) -> Iterator[bytes]:
        """Yield the bytes in ``[start, end)`` in pieces of at most ``chunk_size``."""
        if self.data is not None:
            for offset in range(start, end, chunk_size):
                yield self.data[offset:min(offset + chunk_size, end)]
            return

        with open(self.path, "rb") as handle:
            handle.seek(start)
            remaining = end - start
            while remaining > 0:
                chunk = handle.read(min(chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk


@dataclass
class UploadedFile:
    url: str
    pathname: str
    size: int
    content_type: str
    filename: str


@dataclass
class UploadItem:
    file: LocalFile
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: UploadStatus = UploadStatus.pending
    progress: int = 0
    result: UploadedFile | None = None
    error: str | None = None
    preview: str | None = None
