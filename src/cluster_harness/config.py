"""
Harness configuration.

Configuration precedence (highest to lowest):
1. Explicit overrides (command-line options)
2. Environment variables (``CLUSTER_HARNESS_<FIELD>``)
3. YAML configuration file
4. Default values

Leaving ``server_version`` unset selects mock mode, in which tests run
against the behavioural simulator at ``mock_version``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigurationError, InvalidNodeVersion
from .flags import FeatureFlags, parse_feature_flags
from .version import NodeVersion

ENV_PREFIX = "CLUSTER_HARNESS_"
DEFAULT_MOCK_VERSION = "1.5.15"


class HarnessConfig(BaseModel):
    """Settings describing the deployment a test run targets."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    server_version: Optional[str] = None
    mock_version: str = DEFAULT_MOCK_VERSION
    mock_control_url: Optional[str] = None
    features: str = ""
    dataset_dir: Optional[Path] = None
    log_level: str = "INFO"

    @field_validator("server_version", "mock_version", mode="before")
    @classmethod
    def _version_to_str(cls, value: Any) -> Any:
        # YAML reads an unquoted ``7.0`` as a float
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("features", mode="before")
    @classmethod
    def _join_features(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return ",".join(str(item) for item in value)
        return value

    @field_validator("server_version", "mock_version")
    @classmethod
    def _check_version(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            NodeVersion.parse(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_mock(self) -> bool:
        return self.server_version is None

    def node_version(self) -> NodeVersion:
        if self.is_mock:
            return NodeVersion.parse(self.mock_version, is_mock=True)
        return NodeVersion.parse(self.server_version)

    def feature_flags(self) -> FeatureFlags:
        return parse_feature_flags(self.features)


def _read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as err:
        raise ConfigurationError(f"could not read config file {path}: {err}") from err

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a mapping")
    return data


def _read_environment(env: Mapping[str, str]) -> dict[str, Any]:
    values = {}
    for name in HarnessConfig.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in env:
            values[name] = env[key]
    return values


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> HarnessConfig:
    """
    Build the harness configuration from all sources.

    Args:
        config_file: Optional YAML file with configuration values
        env: Environment to read ``CLUSTER_HARNESS_*`` variables from
            (defaults to ``os.environ``)
        **overrides: Explicit values; None values are ignored

    Returns:
        The merged configuration

    Raises:
        ConfigurationError: If a source cannot be read or a value is invalid
    """
    values: dict[str, Any] = {}
    if config_file is not None:
        values.update(_read_config_file(config_file))
    values.update(_read_environment(os.environ if env is None else env))
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        config = HarnessConfig(**values)
    except (ValidationError, InvalidNodeVersion) as err:
        raise ConfigurationError(f"invalid harness configuration: {err}") from err

    if config.is_mock:
        logger.debug("Harness configured for mock version {}", config.mock_version)
    else:
        logger.debug("Harness configured for server version {}", config.server_version)
    return config
