"""Application settings.

All configuration is sourced from environment variables (and optionally `.env`).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Typed environment-backed settings for the analyzer."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    miro_access_token: str = Field(alias="MIRO_ACCESS_TOKEN")
    openai_api_key: str = Field(
        validation_alias=AliasChoices("OPENAI_API_KEY", "AZURE_OPENAI_API_KEY")
    )
    target_api_base_url: str = Field(alias="TARGET_API_BASE_URL")
    target_api_access_token: str = Field(alias="TARGET_API_ACCESS_TOKEN")
    project_id: int = Field(alias="PROJECT_ID")

    openai_model: str = Field(
        default="gpt-4o",
        validation_alias=AliasChoices("OPENAI_MODEL", "AZURE_OPENAI_DEPLOYMENT"),
    )
    # Setting an endpoint switches the LLM client to Azure OpenAI.
    azure_openai_endpoint: Optional[str] = Field(default=None, alias="AZURE_OPENAI_ENDPOINT")
    azure_openai_api_version: str = Field(
        default="2024-12-01-preview", alias="AZURE_OPENAI_API_VERSION"
    )

    output_dir: Path = Field(default=Path("./output"), alias="OUTPUT_DIR")
    default_board_id: Optional[str] = Field(default=None, alias="MIRO_DEFAULT_BOARD_ID")
    port: int = Field(default=3000, alias="PORT")

    @field_validator("target_api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


# Env var name for each required field, used in fail-fast messages.
REQUIRED_ENV = {
    "miro_access_token": "MIRO_ACCESS_TOKEN",
    "openai_api_key": "OPENAI_API_KEY",
    "target_api_base_url": "TARGET_API_BASE_URL",
    "target_api_access_token": "TARGET_API_ACCESS_TOKEN",
    "project_id": "PROJECT_ID",
}


def load_settings(project_id: Optional[str | int] = None, **overrides) -> Settings:
    """Load settings from the environment, failing fast on missing values.

    Args:
        project_id: Project id supplied on the command line or in a request body.
            Takes precedence over the PROJECT_ID environment variable.
        **overrides: Extra field values keyed by env alias (mostly for tests).

    Raises:
        ConfigurationError: If any required variable is missing or invalid.
    """
    values = dict(overrides)
    if project_id not in (None, ""):
        values["PROJECT_ID"] = project_id
    try:
        return Settings(**values)
    except ValidationError as exc:
        missing = []
        invalid = []
        for error in exc.errors():
            field = str(error["loc"][0]) if error.get("loc") else "?"
            name = REQUIRED_ENV.get(field, field)
            if error.get("type") == "missing":
                missing.append(name)
            else:
                invalid.append(f"{name}: {error.get('msg')}")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                context={"invalid": invalid} if invalid else None,
            ) from exc
        raise ConfigurationError(
            "Invalid configuration", context={"invalid": invalid}
        ) from exc
