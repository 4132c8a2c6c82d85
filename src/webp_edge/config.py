"""Service configuration loaded from the environment."""

from typing import Any, Optional

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationError

ENV_PREFIX = "WEBP_EDGE_"

CACHE_BACKENDS = ("memory", "s3")


class EdgeSettings(BaseSettings):
    """Configuration for one service process, read from ``WEBP_EDGE_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX, case_sensitive=False, extra="ignore"
    )

    origin_bucket: Optional[str] = None
    origin_prefix: str = ""
    cache_backend: str = "memory"
    cache_bucket: Optional[str] = None
    cache_prefix: str = "derivatives/"
    cache_max_entries: int = 10_000
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False

    @model_validator(mode="after")
    def _check_backends(self) -> "EdgeSettings":
        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(
                f"cache_backend must be one of {', '.join(CACHE_BACKENDS)}, "
                f"got {self.cache_backend!r}"
            )
        if self.cache_backend == "s3" and not self.cache_bucket:
            raise ValueError("cache_bucket is required when cache_backend is 's3'")
        if self.cache_max_entries <= 0:
            raise ValueError("cache_max_entries must be positive")
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> "EdgeSettings":
        """
        Build settings from the environment.

        Args:
            **overrides: Values that take precedence over the environment

        Raises:
            ConfigurationError: If a value is missing or malformed
        """
        try:
            return cls(**overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
