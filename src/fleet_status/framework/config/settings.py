"""
Environment configuration.

Settings are read from ``FUSION_*`` environment variables, optionally seeded
from a YAML file. Environment values take precedence over file values.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

TRUTHY_VALUES = {"true", "1", "yes", "on"}


class FleetStatusSettings(BaseSettings):
    """Process configuration for the fleet status tools."""

    model_config = SettingsConfigDict(env_prefix="FUSION_", extra="ignore", populate_by_name=True)

    tools_enabled: bool = Field(default=False, description="Expose the status tools")
    default_timeout: float = Field(default=30.0, gt=0, description="Per-endpoint timeout (seconds)")
    kubeconfig: Path = Field(
        default=Path("~/.kube/config").expanduser(),
        validation_alias=AliasChoices("FUSION_KUBECONFIG", "KUBECONFIG", "kubeconfig"),
    )
    in_cluster: bool = Field(default=False, description="Use ambient in-cluster credentials")
    default_endpoint: str | None = Field(default=None, description="Designated default endpoint")

    service_name: str = "fleet-status"
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("tools_enabled", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in TRUTHY_VALUES

    @field_validator("kubeconfig", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip():
            # KUBECONFIG may list several files; the first one is used
            first = value.split(os.pathsep)[0]
            return Path(first.strip()).expanduser()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return str(value).strip().upper() if value is not None else value


def load_settings(config_file: Path | str | None = None, **overrides: Any) -> FleetStatusSettings:
    """
    Load settings from the environment, seeded by an optional YAML file.

    Args:
        config_file: YAML file with settings keys (``default_timeout``, ...)
        **overrides: Explicit values that win over both file and environment

    Returns:
        FleetStatusSettings instance
    """
    file_values: dict[str, Any] = {}
    if config_file is not None:
        path = Path(config_file)
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"configuration file {path} must contain a mapping")
        file_values = loaded
        logger.debug("Loaded settings file %s", path)

    settings = FleetStatusSettings()
    env_fields = settings.model_fields_set
    merged = {key: value for key, value in file_values.items() if key not in env_fields}
    merged.update({key: value for key, value in overrides.items() if value is not None})
    if not merged:
        return settings

    data = settings.model_dump()
    data.update(merged)
    return FleetStatusSettings.model_validate(data)
