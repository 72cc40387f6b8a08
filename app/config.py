import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


def _split_csv(value: str | None) -> list[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings:
    PROJECT_NAME = "Clay Roofing Backend"

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'clay_roofing.db'}")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # Passcode login
    OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 5))
    SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", 30))
    AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth-token")
    LOGIN_REDIRECT_PATH = os.getenv("LOGIN_REDIRECT_PATH", "/contact?login-required=true")
    PROTECTED_PREFIXES = _split_csv(os.getenv("PROTECTED_PREFIXES", "/dashboard"))

    # SMS (Twilio)
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")
    TWILIO_API_URL = os.getenv("TWILIO_API_URL", "https://api.twilio.com/2010-04-01")

    # E-mail (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    FROM_EMAIL = os.getenv("FROM_EMAIL")
    CONTACT_TO = _split_csv(os.getenv("CONTACT_TO"))
    COMPANY_PHONE = os.getenv("COMPANY_PHONE", "212-365-4386")

    # Object storage (S3 compatible)
    SPACES_REGION = os.getenv("SPACES_REGION")
    SPACES_ENDPOINT = os.getenv("SPACES_ENDPOINT")
    SPACES_KEY = os.getenv("SPACES_KEY")
    SPACES_SECRET = os.getenv("SPACES_SECRET")
    SPACES_NAME = os.getenv("SPACES_NAME")
    SPACES_CDN_URL = os.getenv("SPACES_CDN_URL")
    SPACES_BASE_PATH = (os.getenv("SPACES_BASE_PATH") or "uploads").strip("/")

    UPLOAD_URL_EXPIRE_SECONDS = int(os.getenv("UPLOAD_URL_EXPIRE_SECONDS", 900))
    UPLOAD_MULTIPART_THRESHOLD = int(os.getenv("UPLOAD_MULTIPART_THRESHOLD", 5 * 1024 * 1024))
    UPLOAD_PART_SIZE = int(os.getenv("UPLOAD_PART_SIZE", 5 * 1024 * 1024))
    UPLOAD_MAX_SIZE = int(os.getenv("UPLOAD_MAX_SIZE", 5 * 1024 * 1024 * 1024))
    UPLOAD_ADD_RANDOM_SUFFIX = os.getenv("UPLOAD_ADD_RANDOM_SUFFIX", "true").lower() == "true"
    UPLOAD_ALLOWED_TYPES = _split_csv(
        os.getenv(
            "UPLOAD_ALLOWED_TYPES",
            "image/jpeg,image/jpg,image/png,image/webp,image/heic,application/pdf",
        )
    )

    # Expired code / session reclamation
    CLEANUP_INTERVAL_MINUTES = int(os.getenv("CLEANUP_INTERVAL_MINUTES", 60))
    CLEANUP_AUTO_ENABLED = os.getenv("CLEANUP_AUTO_ENABLED", "true").lower() == "true"

    cors_origins = _split_csv(os.getenv("CORS_ORIGINS", "*"))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def storage_configured(self) -> bool:
        return bool(self.SPACES_KEY and self.SPACES_SECRET and self.SPACES_NAME)


settings = Settings()
