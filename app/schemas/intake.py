import re
from enum import Enum
from pathlib import PurePosixPath
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from app.schemas.contact import is_valid_email

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
PLAN_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf"}


class ProjectTypeEnum(str, Enum):
    new_construction = "new-construction"
    roof_replacement = "roof-replacement"
    not_sure = "not-sure"


def _clean(value):
    if isinstance(value, str):
        return value.strip() or None
    return value


def _bad_files(urls: list[str], extensions: set[str]) -> bool:
    for url in urls:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return True
        if PurePosixPath(parsed.path).suffix.lower() not in extensions:
            return True
    return False


class CallbackRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    project_type: str | None = None

    @field_validator("name", "phone", "email", "project_type", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _clean(value)

    @property
    def phone_digits(self) -> str:
        return re.sub(r"\D", "", self.phone or "")

    def field_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        if not self.name or len(self.name) < 2:
            errors["name"] = ["Please enter your full name."]
        if len(self.phone_digits) != 10:
            errors["phone"] = ["Please enter a complete 10-digit phone number."]
        if not self.email or not is_valid_email(self.email):
            errors["email"] = ["Please enter a valid email address."]
        if self.project_type not in {item.value for item in ProjectTypeEnum}:
            errors["project_type"] = ["Please select a project type."]
        return errors


class ProjectDetails(BaseModel):
    record_id: int | None = None
    project_address: str | None = None
    roof_size: str | None = None
    is_roof_size_unsure: bool = False
    plans: list[str] = []
    photos: list[str] = []
    tile_type: str | None = None
    timeframe: str | None = None
    referral: str | None = None
    message: str | None = None

    @field_validator(
        "project_address", "roof_size", "tile_type", "timeframe", "referral", "message", mode="before"
    )
    @classmethod
    def blank_to_none(cls, value):
        return _clean(value)

    @field_validator("plans", "photos", mode="before")
    @classmethod
    def drop_blank_urls(cls, value):
        if isinstance(value, list):
            return [item.strip() for item in value if isinstance(item, str) and item.strip()]
        return value

    def field_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        if self.record_id is None:
            errors["record_id"] = ["Missing request reference."]
        if _bad_files(self.plans, PLAN_EXTENSIONS):
            errors["plans"] = ["Only .pdf, .jpg, .png, and .webp formats are supported."]
        if _bad_files(self.photos, IMAGE_EXTENSIONS):
            errors["photos"] = ["Only .jpg, .png, and .webp formats are supported."]
        return errors


class LeadRequestResponse(BaseModel):
    id: int
    name: str
    phone: str
    email: str
    project_type: str
    project_address: str | None
    roof_size: str | None
    is_roof_size_unsure: bool
    plan_urls: list[str]
    photo_urls: list[str]
    tile_type: str | None
    timeframe: str | None
    referral: str | None
    message: str | None
    status: str

    model_config = {"from_attributes": True}
