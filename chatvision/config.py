# chatvision/config.py
import logging
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load .env once here
load_dotenv()

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB limit


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _origins() -> List[str]:
    raw = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass
class Settings:
    openai_api_key: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    openai_base_url: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL"))
    text_model: str = field(default_factory=lambda: os.getenv("TEXT_MODEL", "gpt-4o-mini"))
    vision_model: str = field(default_factory=lambda: os.getenv("VISION_MODEL", "gpt-4o"))

    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))
    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", "data")))
    static_dir: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["STATIC_DIR"]) if os.getenv("STATIC_DIR") else None
    )
    cors_origins: List[str] = field(default_factory=_origins)
    max_upload_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES)))
    )

    # tokens are signed with a per-process secret unless one is configured
    jwt_secret: str = field(default_factory=lambda: os.getenv("JWT_SECRET") or secrets.token_hex(32))
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    )
    enforce_auth: bool = field(default_factory=lambda: _flag("ENFORCE_AUTH"))

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
