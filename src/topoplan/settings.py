"""
Library settings.

Environment-driven defaults loaded with Pydantic Settings. Every variable
uses the `TOPOPLAN_` prefix, e.g. `TOPOPLAN_REGION=eu-west-1` or
`TOPOPLAN_AVAILABILITY_ZONES='["eu-west-1a", "eu-west-1b"]'`.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Defaults for the emission context and the AZ inventory."""

    model_config = SettingsConfigDict(
        env_prefix="TOPOPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    region: str = Field(default="us-east-1", description="Region written into the plan context")
    availability_zones: list[str] = Field(
        default_factory=lambda: ["us-east-1a", "us-east-1b", "us-east-1c"],
        description="AZs available to the account; max_azs is clamped to this list",
    )
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Render log events as JSON")

    def context(self) -> dict[str, str]:
        """Values available to `ContextRef` fields at emission."""
        return {"region": self.region}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
