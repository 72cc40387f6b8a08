import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, HTTPException, status

from app.schemas.upload import AbortUploadRequest, CompleteUploadRequest, UploadAuthorizationRequest
from app.services.spaces_service import (
    StorageNotConfigured,
    UploadRejected,
    abort_multipart_upload,
    complete_multipart_upload,
    create_upload_authorization,
)
from app.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/blob", tags=["Uploads"])
logger = logging.getLogger(__name__)


def _storage_error(exc: Exception, action: str) -> HTTPException:
    logger.error("Storage %s failed: %s", action, exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Upload {action} failed")


@router.post("/upload")
def authorize_upload(body: UploadAuthorizationRequest):
    try:
        try:
            payload = create_upload_authorization(body.filename, body.content_type, body.size)
        except StorageNotConfigured as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
        except UploadRejected as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except (BotoCoreError, ClientError) as exc:
            raise _storage_error(exc, "authorization")

        payload["filename"] = body.filename
        payload["size"] = body.size
        payload["client_payload"] = body.client_payload
        return create_response(
            message="Upload authorized",
            data=payload,
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/upload/complete")
def complete_upload(body: CompleteUploadRequest):
    try:
        try:
            url = complete_multipart_upload(
                body.key,
                body.upload_id,
                [part.model_dump() for part in body.parts],
            )
        except StorageNotConfigured as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
        except (BotoCoreError, ClientError) as exc:
            raise _storage_error(exc, "completion")

        return create_response(
            message="Upload complete",
            data={"key": body.key, "pathname": body.key, "url": url},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/upload/abort")
def abort_upload(body: AbortUploadRequest):
    try:
        try:
            abort_multipart_upload(body.key, body.upload_id)
        except StorageNotConfigured as exc:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
        except (BotoCoreError, ClientError) as exc:
            raise _storage_error(exc, "abort")

        return create_response(
            message="Upload aborted",
            data={"key": body.key},
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)
