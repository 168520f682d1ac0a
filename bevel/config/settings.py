"""
Global settings from environment variables.

Logging is configured separately through LOG_LEVEL / LOG_JSON
(see bevel.utils.logging).
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from bevel.permission.resolver import Permission


class BevelSettings(BaseSettings):
    """
    Global configuration loaded from environment variables.

    Environment variables are prefixed with BEVEL_
    Example: BEVEL_DEFAULT_PERMISSION=allow,
             BEVEL_PERMISSIONS='{"git.*": "allow", "git.push": "ask"}'
    """

    model_config = SettingsConfigDict(
        env_prefix="BEVEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_permission: Permission = "ask"
    permissions: dict[str, Permission] = Field(default_factory=dict)
    permissions_file: str | None = None  # YAML policy, overridden by `permissions`

    approval_timeout: float | None = Field(default=None, gt=0)  # None waits forever


# Global settings instance (singleton)
settings = BevelSettings()


__all__ = ["BevelSettings", "settings"]
