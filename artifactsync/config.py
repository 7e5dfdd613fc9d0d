"""Run configuration — env-driven, GitHub Action aware.

Centralized config using pydantic-settings. Reads from a .env file and
ARTIFACTSYNC_* environment variables; when running as a GitHub Action the
``INPUT_*`` variables of the action take precedence over both.

Examples
--------
Override via environment::

    export ARTIFACTSYNC_MODE=history
    export ARTIFACTSYNC_PIN_ENDPOINT=api.pinata.cloud/psa
    export ARTIFACTSYNC_PIN_TOKEN=...
    export ARTIFACTSYNC_DRY_RUN=true
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from artifactsync.core.provenance import DEFAULT_PROVENANCE_TAG
from artifactsync.core.reconciler import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from artifactsync.remote.archival import DEFAULT_W3S_ENDPOINT
from artifactsync.remote.http import DEFAULT_TIMEOUT
from artifactsync.remote.kubo import DEFAULT_IPFS_API


class OperatingMode(str, Enum):
    VALIDATE = "validate"
    HISTORY = "history"


class OutputType(str, Enum):
    SUMMARY = "summary"
    ARTIFACTS = "artifacts"
    CIDS = "cids"


# GitHub Action input -> SyncConfig field
_ACTION_INPUTS: dict[str, str] = {
    "INPUT_MODE": "mode",
    "INPUT_PATH": "path",
    "INPUT_IPFS-API": "ipfs_api",
    "INPUT_PIN-ENDPOINT": "pin_endpoint",
    "INPUT_PIN-TOKEN": "pin_token",
    "INPUT_W3S-TOKEN": "w3s_token",
    "INPUT_DRY-RUN": "dry_run",
}


class SyncConfig(BaseSettings):
    """Configuration of one run, with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ARTIFACTSYNC_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Where artifacts come from
    repo: Path = Path(".")
    mode: OperatingMode = OperatingMode.VALIDATE
    path: str = "artifacts"

    # Node service
    ipfs_api: str = DEFAULT_IPFS_API

    # Destinations
    pin_endpoint: str | None = None
    pin_token: SecretStr | None = None
    w3s_token: SecretStr | None = None
    w3s_endpoint: str = DEFAULT_W3S_ENDPOINT

    # Behaviour
    output: OutputType = OutputType.SUMMARY
    action: bool = False
    dry_run: bool = False
    provenance_tag: str = DEFAULT_PROVENANCE_TAG
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    request_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    # Observability
    log_level: str = "INFO"

    @property
    def pinning_enabled(self) -> bool:
        """Both the pinning endpoint and its token are set."""
        return bool(self.pin_endpoint) and bool(_secret(self.pin_token))

    @property
    def archival_enabled(self) -> bool:
        return bool(_secret(self.w3s_token))

    @property
    def any_destination(self) -> bool:
        return self.pinning_enabled or self.archival_enabled

    @classmethod
    def from_environment(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> SyncConfig:
        """Build a config from Action inputs, env vars and *overrides*.

        *overrides* whose value is None are ignored, so CLI options that
        were not given fall through to the environment.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if environ.get("GITHUB_ACTIONS") == "true" or "GITHUB_WORKSPACE" in environ:
            values["action"] = True
        if environ.get("GITHUB_WORKSPACE"):
            values["repo"] = Path(environ["GITHUB_WORKSPACE"])

        for variable, field_name in _ACTION_INPUTS.items():
            value = environ.get(variable, "").strip()
            if value:
                values[field_name] = value

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


def _secret(value: SecretStr | None) -> str:
    return value.get_secret_value() if value is not None else ""
