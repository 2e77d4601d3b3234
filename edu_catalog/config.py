"""Application configuration loaded from environment variables."""

import os
from functools import lru_cache

from dotenv import load_dotenv

from edu_catalog.errors import ConfigError

load_dotenv()

REQUIRED_VARIABLES = ("SUPABASE_URL", "SUPABASE_ANON_KEY")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self):
        self.supabase_url: str = os.getenv("SUPABASE_URL", "").rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")
        timeout = os.getenv("SUPABASE_TIMEOUT", "30.0")
        try:
            self.request_timeout: float = float(timeout)
        except ValueError:
            raise ConfigError(f"SUPABASE_TIMEOUT must be a number of seconds, got {timeout!r}") from None

    @property
    def rest_base_url(self) -> str:
        return f"{self.supabase_url}/rest/v1"

    @property
    def auth_base_url(self) -> str:
        return f"{self.supabase_url}/auth/v1"

    def validate(self) -> "Settings":
        """Fail fast when a required value is absent.

        Raises:
            ConfigError: if SUPABASE_URL or SUPABASE_ANON_KEY is empty
        """
        missing = [
            name
            for name, value in zip(
                REQUIRED_VARIABLES, (self.supabase_url, self.supabase_anon_key)
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                f"Missing Supabase environment variables: {', '.join(missing)}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached, validated settings instance."""
    return Settings().validate()
