"""Application configuration from environment."""
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Load .env from project root (parent of app/) so env vars are available everywhere
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)


class Settings(BaseSettings):
    app_name: str = "Bienes Raices"
    app_env: str = "development"
    debug: bool = True
    app_base_url: str = "http://localhost:8000"

    database_url: str = "sqlite:///./bienes_raices.db"

    jwt_secret_key: str = "jwt-secret-change-me"
    jwt_algorithm: str = "HS256"

    @field_validator("jwt_secret_key")
    @classmethod
    def strip_jwt_secret(cls, v: str) -> str:
        return (v or "").strip()

    # 0 disables the exp claim (proof valid while it verifies and the user exists)
    session_expire_minutes: int = 60 * 24
    session_cookie_name: str = "_token"
    session_cookie_secure: bool = False

    bcrypt_rounds: int = 12

    @field_validator("bcrypt_rounds")
    @classmethod
    def min_bcrypt_rounds(cls, v: int) -> int:
        if v < 10:
            raise ValueError("BCRYPT_ROUNDS must be at least 10")
        return v

    upload_dir: str = "public/uploads"
    max_image_bytes: int = 1_000_000

    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "noreply@bienesraices.demo"
    sendgrid_from_name: str = "Bienes Raices"

    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_base_url: str = "https://api.mailgun.net"
    mailgun_from_email: str = "noreply@bienesraices.demo"
    mailgun_from_name: str = "Bienes Raices"

    @field_validator("mailgun_api_key", "mailgun_domain", "mailgun_base_url", "mailgun_from_email", mode="before")
    @classmethod
    def strip_mailgun(cls, v: str) -> str:
        return (v or "").strip()

    class Config:
        env_file = str(_env_path)
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
