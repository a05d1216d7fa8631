"""Configuration management for FormRelay."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from app.errors import ConfigurationError


def _load_env_file() -> None:
    """Load .env from root directory if present."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.is_file():
        return
    try:
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                key, value = stripped.split("=", 1)
                key, value = key.strip(), value.strip().strip("'\"")
                if key and value and key not in os.environ:
                    os.environ[key] = value
    except OSError:
        pass


_load_env_file()


DEFAULT_APP_NAME = "FormRelay - contact form mail proxy"
DEFAULT_APP_VERSION = "0.1.0"


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.getenv(name, str(fallback)))
    except (TypeError, ValueError):
        return fallback


def _env_bool(name: str, fallback: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return fallback
    return raw.strip().lower() not in {"0", "false", "no", "off"}


class Settings(BaseModel):
    """Application settings with all environment variables for FormRelay."""

    # App metadata
    app_name: str = Field(default=DEFAULT_APP_NAME)
    app_version: str = Field(default=DEFAULT_APP_VERSION)

    # Server runtime
    server_host: str = Field(default=os.getenv("FORMRELAY_HOST", "0.0.0.0"))
    server_port: int = Field(default=_env_int("FORMRELAY_PORT", 3001))

    # Environment
    env: str = Field(default=os.getenv("ENV", "dev"))
    log_level: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    # HTTP behaviour
    allowed_origins_raw: str = Field(default=os.getenv("ALLOWED_ORIGINS", ""))
    max_body_bytes: int = Field(default=_env_int("MAX_BODY_BYTES", 100 * 1024))
    enable_docs: bool = Field(default=_env_bool("FORMRELAY_ENABLE_DOCS", False))

    # Rate limiting (fixed window, per client IP)
    rate_limit_window_seconds: int = Field(default=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60))
    rate_limit_mail_max: int = Field(default=_env_int("RATE_LIMIT_MAIL_MAX", 5))
    rate_limit_general_max: int = Field(default=_env_int("RATE_LIMIT_GENERAL_MAX", 100))
    trust_forwarded_for: bool = Field(default=_env_bool("TRUST_FORWARDED_FOR", False))

    # Notification routing
    business_email: Optional[str] = Field(default=os.getenv("BUSINESS_EMAIL"))
    business_name: str = Field(default=os.getenv("BUSINESS_NAME", "Our Team"))
    mail_from: Optional[str] = Field(default=os.getenv("MAIL_FROM"))

    # Transport selection
    mail_transport: str = Field(default=os.getenv("MAIL_TRANSPORT", "smtp"))
    mail_send_timeout: float = Field(default=_env_float("MAIL_SEND_TIMEOUT", 30.0))

    # SMTP relay
    smtp_host: Optional[str] = Field(default=os.getenv("SMTP_HOST"))
    smtp_port: int = Field(default=_env_int("SMTP_PORT", 587))
    smtp_username: Optional[str] = Field(default=os.getenv("SMTP_USERNAME"))
    smtp_password: Optional[str] = Field(default=os.getenv("SMTP_PASSWORD"))
    smtp_use_tls: bool = Field(default=_env_bool("SMTP_USE_TLS", True))
    smtp_max_connections: int = Field(default=_env_int("SMTP_MAX_CONNECTIONS", 5))
    smtp_max_messages: int = Field(default=_env_int("SMTP_MAX_MESSAGES", 100))

    # EmailJS
    emailjs_service_id: Optional[str] = Field(default=os.getenv("EMAILJS_SERVICE_ID"))
    emailjs_provider_template_id: Optional[str] = Field(
        default=os.getenv("EMAILJS_PROVIDER_TEMPLATE_ID")
    )
    emailjs_client_template_id: Optional[str] = Field(default=os.getenv("EMAILJS_CLIENT_TEMPLATE_ID"))
    emailjs_public_key: Optional[str] = Field(default=os.getenv("EMAILJS_PUBLIC_KEY"))
    emailjs_private_key: Optional[str] = Field(default=os.getenv("EMAILJS_PRIVATE_KEY"))
    emailjs_default_reply_to: Optional[str] = Field(default=os.getenv("EMAILJS_DEFAULT_REPLY_TO"))
    emailjs_send_url: str = Field(
        default=os.getenv("EMAILJS_SEND_URL", "https://api.emailjs.com/api/v1.0/email/send")
    )

    # Microsoft Graph
    graph_tenant_id: Optional[str] = Field(default=os.getenv("GRAPH_TENANT_ID"))
    graph_client_id: Optional[str] = Field(default=os.getenv("GRAPH_CLIENT_ID"))
    graph_client_secret: Optional[str] = Field(default=os.getenv("GRAPH_CLIENT_SECRET"))

    @property
    def allowed_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if self.allowed_origins_raw.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins_raw.split(",") if origin.strip()]

    @property
    def emailjs_public_config_available(self) -> bool:
        """Whether the public EmailJS identifiers needed by browsers are set."""
        return bool(self.emailjs_service_id and self.emailjs_public_key)

    def missing_settings(self) -> List[str]:
        """Return the environment variable names that must be set but are not."""
        missing: List[str] = []
        if not self.allowed_origins:
            missing.append("ALLOWED_ORIGINS")
        if not self.business_email:
            missing.append("BUSINESS_EMAIL")

        transport = self.mail_transport.strip().lower()
        required: dict[str, Optional[str]]
        if transport == "smtp":
            required = {
                "SMTP_HOST": self.smtp_host,
                "SMTP_USERNAME": self.smtp_username,
                "SMTP_PASSWORD": self.smtp_password,
                "MAIL_FROM": self.mail_from,
            }
        elif transport == "emailjs":
            required = {
                "EMAILJS_SERVICE_ID": self.emailjs_service_id,
                "EMAILJS_PROVIDER_TEMPLATE_ID": self.emailjs_provider_template_id,
                "EMAILJS_CLIENT_TEMPLATE_ID": self.emailjs_client_template_id,
                "EMAILJS_PUBLIC_KEY": self.emailjs_public_key,
                "EMAILJS_PRIVATE_KEY": self.emailjs_private_key,
            }
        elif transport == "graph":
            required = {
                "GRAPH_TENANT_ID": self.graph_tenant_id,
                "GRAPH_CLIENT_ID": self.graph_client_id,
                "GRAPH_CLIENT_SECRET": self.graph_client_secret,
                "MAIL_FROM": self.mail_from,
            }
        else:
            # Registered custom transports validate their own settings
            required = {}
        missing.extend(name for name, value in required.items() if not value)
        return missing

    def require_complete(self) -> None:
        """Raise `ConfigurationError` listing every missing mandatory variable."""
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(missing)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
