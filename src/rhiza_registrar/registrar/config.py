"""Configuration for the registrar.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Workflow definitions may reference any variable (for example `$STAMP_KLADOS_1`);
those are resolved from the same two sources, with the process environment winning.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rhiza_registrar.registrar.sync.state import Network

DEFAULT_ENV_FILE = Path(".env")


class RegistrarSettings(BaseSettings):
    """Settings for the registrar CLI.

    Environment variables:
    - ARKE_USER_KEY
    - ARKE_API_BASE                  (optional)
    - ARKE_NETWORK                   (optional, used by list-kladoi)
    - ARKE_REQUEST_TIMEOUT_SECONDS   (optional)
    - LOG_LEVEL                      (optional)
    - RHIZA_WORKFLOWS_DIR            (optional)
    - RHIZA_STATE_DIR                (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `RegistrarSettings(_env_file=path_to_env)`.
    """

    arke_user_key: str = Field(
        default="",
        validation_alias="ARKE_USER_KEY",
        description="Arke user key (uk_...) used for API authentication",
    )
    arke_api_base: str = Field(
        default="https://arke-v1.arke.institute",
        validation_alias="ARKE_API_BASE",
        description="Arke API base URL",
    )
    arke_network: Network = Field(
        default=Network.TEST,
        validation_alias="ARKE_NETWORK",
        description="Default network for read-only commands",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias="ARKE_REQUEST_TIMEOUT_SECONDS",
        description="Timeout for each HTTP request to the Arke API",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    workflows_dir: Path = Field(
        default=Path("workflows"),
        validation_alias="RHIZA_WORKFLOWS_DIR",
        description="Directory containing <workflow>.json definitions",
    )
    state_dir: Path = Field(
        default=Path("."),
        validation_alias="RHIZA_STATE_DIR",
        description="Directory where per-workflow, per-network registration state is kept",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=DEFAULT_ENV_FILE,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_user_key(self) -> RegistrarSettings:
        if not self.arke_user_key.strip():
            raise ValueError("ARKE_USER_KEY is required")
        return self


def resolution_environment(env_file: Path | None = DEFAULT_ENV_FILE) -> dict[str, str]:
    """Variables available to `$NAME` placeholders: `.env` overlaid by the process env."""

    merged: dict[str, str] = {}
    if env_file is not None and env_file.exists():
        merged.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    merged.update(os.environ)
    return merged
