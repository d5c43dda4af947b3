"""Configuration for the workflow engine.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Every engine-specific variable is prefixed with ``WORKFLOW_`` so it cannot
collide with the surrounding dashboard's settings.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Settings for the workflow engine and its HTTP adapter.

    Environment variables:
    - WORKFLOW_STATE_PATH                  (optional)
    - WORKFLOW_CATALOG_PATH                (optional; built-in catalog when unset)
    - WORKFLOW_DEFAULT_CATEGORY            (optional)
    - WORKFLOW_STRICT_TRIGGERS             (optional)
    - WORKFLOW_OPERATION_TIMEOUT_SECONDS   (optional)
    - WORKFLOW_NOTIFY_WEBHOOK_URL          (optional; log-only notifications when unset)
    - WORKFLOW_NOTIFY_TIMEOUT_SECONDS      (optional)
    - WORKFLOW_CORS_ORIGINS                (optional)
    - LOG_LEVEL                            (optional)

    Notes:
        Tests can override the env file via ``EngineSettings(_env_file=path)``.
    """

    state_path: Path = Field(
        default=Path("workflow_state/store.json"),
        validation_alias="WORKFLOW_STATE_PATH",
        description="JSON file backing the reference persistence gateway",
    )
    catalog_path: Path | None = Field(
        default=None,
        validation_alias="WORKFLOW_CATALOG_PATH",
        description="Optional JSON template catalog replacing the built-in one",
    )
    default_category: str = Field(
        default="individual",
        validation_alias="WORKFLOW_DEFAULT_CATEGORY",
        description="Category whose workflow applies to clients of an unknown category",
    )
    strict_triggers: bool = Field(
        default=False,
        validation_alias="WORKFLOW_STRICT_TRIGGERS",
        description=(
            "If true, a catalog that references completion triggers with no follow-up "
            "template is rejected at startup instead of being logged and skipped at runtime."
        ),
    )
    operation_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="WORKFLOW_OPERATION_TIMEOUT_SECONDS",
        description="Default time bound for advance/complete/recompute calls",
    )
    notify_webhook_url: str = Field(
        default="",
        validation_alias="WORKFLOW_NOTIFY_WEBHOOK_URL",
        description="Endpoint receiving task completion notifications as JSON",
    )
    notify_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias="WORKFLOW_NOTIFY_TIMEOUT_SECONDS",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    # Dev-friendly CORS for the dashboard front end.
    cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        validation_alias="WORKFLOW_CORS_ORIGINS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("default_category")
    @classmethod
    def _normalise_category(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("WORKFLOW_DEFAULT_CATEGORY must not be empty")
        return value

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
