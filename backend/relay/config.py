from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Store (memcached "host[:port]"); required to serve
    memcached: str | None = None
    memcached_pool_size: int = 2

    # Listener
    host: str = "0.0.0.0"
    port: int = 1337
    tls_cert: str | None = None
    tls_key: str | None = None

    # Static UI
    public_dir: str = "public"

    # Limits
    max_secret_length: int = 10_000  # bytes

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" | "json"

    # Rate Limiting
    rate_limit_enabled: bool = False
    rate_limit_creates: str = "10/minute"
    rate_limit_retrieves: str = "30/minute"

    # CORS
    cors_origins: list[str] | str = []

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def tls_enabled(self) -> bool:
        return bool(self.tls_cert) and bool(self.tls_key)


settings = Settings()
