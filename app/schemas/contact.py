from datetime import datetime

from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError, field_validator

MIN_MESSAGE_LENGTH = 10

_email_adapter = TypeAdapter(EmailStr)


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


class ContactSubmissionCreate(BaseModel):
    name: str = ""
    email: str = ""
    phone: str | None = None
    company: str | None = None
    contact_type: str = ""
    tile_family: str | None = None
    tile_color: str | None = None
    message: str = ""
    uploaded_files: list[str] = []
    privacy_accepted: bool = False
    sms_opt_in: bool = False

    @field_validator("name", "email", "contact_type", "message", mode="before")
    @classmethod
    def strip_required(cls, value):
        return (value or "").strip() if isinstance(value, str) or value is None else value

    @field_validator("phone", "company", "tile_family", "tile_color", mode="before")
    @classmethod
    def strip_optional(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    def field_errors(self) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        if not self.name:
            errors["name"] = ["Name is required"]
        if not self.email:
            errors["email"] = ["Email is required"]
        elif not is_valid_email(self.email):
            errors["email"] = ["Please enter a valid email address"]
        if not self.message:
            errors["message"] = ["Message is required"]
        elif len(self.message) < MIN_MESSAGE_LENGTH:
            errors["message"] = [f"Message must be at least {MIN_MESSAGE_LENGTH} characters long"]
        if not self.contact_type:
            errors["contact_type"] = ["Please select your contact type"]
        if not self.privacy_accepted:
            errors["privacy_accepted"] = ["You must accept the Privacy Policy to continue"]
        return errors


class ContactSubmissionResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str | None
    company: str | None
    contact_type: str
    tile_family: str | None
    tile_color: str | None
    message: str
    uploaded_files: list[str]
    status: str
    submitted_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
