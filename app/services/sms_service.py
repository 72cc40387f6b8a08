import logging

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class SmsNotConfigured(RuntimeError):
    pass


def send_sms(to_phone: str, body: str) -> dict:
    """Send a text message through the Twilio Messages API and return the message resource."""
    if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_PHONE_NUMBER):
        raise SmsNotConfigured("Twilio is not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER.")

    url = f"{settings.TWILIO_API_URL}/Accounts/{settings.TWILIO_ACCOUNT_SID}/Messages.json"
    response = httpx.post(
        url,
        data={"From": settings.TWILIO_PHONE_NUMBER, "To": to_phone, "Body": body},
        auth=(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN),
        timeout=15,
    )
    response.raise_for_status()
    payload = response.json()
    logger.info("SMS queued sid=%s status=%s", payload.get("sid"), payload.get("status"))
    return payload


def send_sms_otp(to_phone: str, otp: str) -> dict:
    return send_sms(to_phone, f"Your Clay Roofing NY login code: {otp}")
