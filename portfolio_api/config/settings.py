from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Cloudflare egress ranges, published at https://www.cloudflare.com/ips/
CLOUDFLARE_RANGES = [
    "173.245.48.0/20",
    "103.21.244.0/22",
    "103.22.200.0/22",
    "103.31.4.0/22",
    "141.101.64.0/18",
    "108.162.192.0/18",
    "190.93.240.0/20",
    "188.114.96.0/20",
    "197.234.240.0/22",
    "198.41.128.0/17",
    "162.158.0.0/15",
    "104.16.0.0/13",
    "104.24.0.0/14",
    "172.64.0.0/13",
    "131.0.72.0/22",
    "2400:cb00::/32",
    "2606:4700::/32",
    "2803:f800::/32",
    "2405:b500::/32",
    "2405:8100::/32",
    "2a06:98c0::/29",
    "2c0f:f248::/32",
]


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    url: str = Field(validation_alias="DATABASE_URL")
    serverless: bool = Field(
        default=False,
        validation_alias="DB_SERVERLESS",
        description="If true, disable connection pooling so serverless DBs can pause.",
    )
    pool_timeout: float = Field(default=10.0, validation_alias="DB_POOL_TIMEOUT", gt=0)
    command_timeout: float = Field(
        default=10.0,
        validation_alias="DB_COMMAND_TIMEOUT",
        gt=0,
    )

    @field_validator("url")
    @classmethod
    def _require_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return value.strip()

    @property
    def async_url(self) -> str:
        """Get database URL with an async driver selected"""
        url = self.url
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class SecurityConfig(BaseSettings):
    """Session token signing and cookie configuration."""

    secret_key: SecretStr = Field(validation_alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    session_cookie_name: str = Field(default="sid", validation_alias="SESSION_COOKIE_NAME")
    session_max_age_days: int = Field(
        default=365,
        validation_alias="SESSION_MAX_AGE_DAYS",
        ge=1,
    )
    session_cookie_secure: bool = Field(
        default=True,
        validation_alias="SESSION_COOKIE_SECURE",
    )

    @field_validator("secret_key")
    @classmethod
    def _require_secret(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("SECRET_KEY must not be empty")
        return value

    @property
    def session_max_age_seconds(self) -> int:
        return self.session_max_age_days * 24 * 60 * 60

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class MailConfig(BaseSettings):
    """SMTP delivery configuration for contact form emails."""

    host: Optional[str] = None
    port: int = 587
    username: Optional[str] = None
    password: SecretStr | None = None
    sender: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False
    timeout: float = Field(default=10.0, gt=0)
    owner_address: Optional[str] = Field(
        default=None,
        validation_alias="CONTACT_RECIPIENT",
    )

    def is_configured(self) -> bool:
        return bool(self.host and self.sender)

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class GeoIpConfig(BaseSettings):
    """ip-api.com lookup configuration."""

    base_url: str = "http://ip-api.com/json"
    fields: str = "status,country,regionName,city,isp,mobile,hosting,proxy"
    timeout_seconds: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="GEOIP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class ClientIpConfig(BaseSettings):
    """Client address resolution configuration."""

    trusted_header: Optional[str] = "x-edge-client-ip"
    cdn_ranges: list[str] = Field(default_factory=lambda: list(CLOUDFLARE_RANGES))

    model_config = SettingsConfigDict(
        env_prefix="CLIENT_IP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Portfolio Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    log_file: Optional[str] = "logs/app.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # Security
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    # Mail
    mail: MailConfig = Field(default_factory=MailConfig)

    # Geo lookups
    geoip: GeoIpConfig = Field(default_factory=GeoIpConfig)

    # Client IP resolution
    client_ip: ClientIpConfig = Field(default_factory=ClientIpConfig)

    # CORS
    cors_origins: list[str] = [
        "https://rahulsingh.ai",
        "https://www.rahulsingh.ai",
    ]
    cors_preview_suffix: str = ".vercel.app"
    cors_allow_methods: list[str] = ["GET", "POST", "OPTIONS"]
    cors_allow_headers: list[str] = ["Content-Type", "Authorization"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Build the process-wide settings once; fails fast on missing secrets."""
    return Settings()
