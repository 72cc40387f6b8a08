from pydantic import BaseModel, Field


class UploadAuthorizationRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = "application/octet-stream"
    size: int = Field(..., ge=0)
    client_payload: dict | None = None


class UploadedPart(BaseModel):
    part_number: int = Field(..., ge=1)
    etag: str


class CompleteUploadRequest(BaseModel):
    key: str
    upload_id: str
    parts: list[UploadedPart]


class AbortUploadRequest(BaseModel):
    key: str
    upload_id: str
