import re
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, field_validator, model_validator

PHONE_PATTERN = re.compile(r"^\+[1-9]\d{10,14}$")


class ChannelEnum(str, Enum):
    email = "email"
    sms = "sms"


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class RequestCode(BaseModel):
    email: EmailStr | None = None
    phone: str | None = None
    type: ChannelEnum = ChannelEnum.email

    @field_validator("email", "phone", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _clean(value)

    @field_validator("phone")
    @classmethod
    def phone_format(cls, value: str | None) -> str | None:
        if value is not None and not PHONE_PATTERN.match(value):
            raise ValueError("Please enter a valid phone number with country code (e.g., +12125551234)")
        return value

    @model_validator(mode="after")
    def identifier_for_channel(self):
        if not self.email and not self.phone:
            raise ValueError("Email or phone required")
        if self.type == ChannelEnum.sms and not self.phone:
            raise ValueError("Phone number required for SMS delivery")
        if self.type == ChannelEnum.email and not self.email:
            raise ValueError("Email address required for email delivery")
        return self


class VerifyCode(BaseModel):
    email: EmailStr | None = None
    phone: str | None = None
    code: str | None = None

    @field_validator("email", "phone", "code", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _clean(value)

    @model_validator(mode="after")
    def code_and_identifier(self):
        if not self.code or (not self.email and not self.phone):
            raise ValueError("Code and email or phone required")
        return self


class SessionResponse(BaseModel):
    email: str | None
    phone: str | None
    expires_at: datetime

    model_config = {"from_attributes": True}
