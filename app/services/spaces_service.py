import logging
import math
import re
import uuid
from pathlib import PurePosixPath

import boto3

from app.config import settings

logger = logging.getLogger(__name__)

session = boto3.session.Session()

s3 = session.client(
    "s3",
    region_name=settings.SPACES_REGION,
    endpoint_url=settings.SPACES_ENDPOINT,
    aws_access_key_id=settings.SPACES_KEY,
    aws_secret_access_key=settings.SPACES_SECRET,
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageNotConfigured(RuntimeError):
    pass


class UploadRejected(ValueError):
    pass


def _join_path(*segments: str) -> str:
    cleaned = [segment.strip("/") for segment in segments if segment and segment.strip("/")]
    return "/".join(cleaned)


def _ensure_configured() -> None:
    if not settings.storage_configured:
        raise StorageNotConfigured("Storage is not configured")


def sanitize_filename(filename: str) -> str:
    name = PurePosixPath(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("-", name).strip("-.")
    return name or "upload"


def build_key(filename: str, add_random_suffix: bool | None = None) -> str:
    if add_random_suffix is None:
        add_random_suffix = settings.UPLOAD_ADD_RANDOM_SUFFIX
    name = sanitize_filename(filename)
    if add_random_suffix:
        path = PurePosixPath(name)
        name = f"{path.stem}-{uuid.uuid4().hex[:12]}{path.suffix}"
    return _join_path(settings.SPACES_BASE_PATH, name)


def public_url(key: str) -> str:
    if settings.SPACES_CDN_URL:
        return f"{settings.SPACES_CDN_URL.rstrip('/')}/{key}"
    endpoint = (settings.SPACES_ENDPOINT or "https://s3.amazonaws.com").rstrip("/")
    return f"{endpoint}/{settings.SPACES_NAME}/{key}"


def validate_upload(content_type: str, size: int) -> None:
    allowed = settings.UPLOAD_ALLOWED_TYPES
    if allowed and content_type not in allowed:
        raise UploadRejected(f"File type {content_type} is not allowed")
    if size <= 0:
        raise UploadRejected("Empty file upload")
    if size > settings.UPLOAD_MAX_SIZE:
        raise UploadRejected("File is larger than the upload limit")


def create_upload_authorization(filename: str, content_type: str, size: int) -> dict:
    """Issue short-lived presigned URLs that let a client push bytes straight to the bucket.

    Files above the multipart threshold get one URL per part plus an upload id
    that must be passed back to ``complete_multipart_upload``.
    """
    _ensure_configured()
    validate_upload(content_type, size)

    key = build_key(filename)
    expires_in = settings.UPLOAD_URL_EXPIRE_SECONDS
    payload = {
        "key": key,
        "pathname": key,
        "public_url": public_url(key),
        "content_type": content_type,
        "expires_in": expires_in,
    }

    if size <= settings.UPLOAD_MULTIPART_THRESHOLD:
        url = s3.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.SPACES_NAME,
                "Key": key,
                "ContentType": content_type,
                "ACL": "public-read",
            },
            ExpiresIn=expires_in,
        )
        payload.update({"multipart": False, "method": "PUT", "url": url})
        return payload

    part_size = settings.UPLOAD_PART_SIZE
    part_count = math.ceil(size / part_size)
    upload = s3.create_multipart_upload(
        Bucket=settings.SPACES_NAME,
        Key=key,
        ContentType=content_type,
        ACL="public-read",
    )
    upload_id = upload["UploadId"]
    parts = [
        {
            "part_number": number,
            "url": s3.generate_presigned_url(
                "upload_part",
                Params={
                    "Bucket": settings.SPACES_NAME,
                    "Key": key,
                    "UploadId": upload_id,
                    "PartNumber": number,
                },
                ExpiresIn=expires_in,
            ),
        }
        for number in range(1, part_count + 1)
    ]
    logger.info("Started multipart upload key=%s parts=%s", key, part_count)
    payload.update(
        {
            "multipart": True,
            "method": "PUT",
            "upload_id": upload_id,
            "part_size": part_size,
            "parts": parts,
        }
    )
    return payload


def complete_multipart_upload(key: str, upload_id: str, parts: list[dict]) -> str:
    _ensure_configured()
    ordered = sorted(parts, key=lambda part: part["part_number"])
    s3.complete_multipart_upload(
        Bucket=settings.SPACES_NAME,
        Key=key,
        UploadId=upload_id,
        MultipartUpload={
            "Parts": [{"PartNumber": part["part_number"], "ETag": part["etag"]} for part in ordered]
        },
    )
    logger.info("Completed multipart upload key=%s parts=%s", key, len(ordered))
    return public_url(key)


def abort_multipart_upload(key: str, upload_id: str) -> None:
    _ensure_configured()
    s3.abort_multipart_upload(Bucket=settings.SPACES_NAME, Key=key, UploadId=upload_id)
    logger.info("Aborted multipart upload key=%s", key)
