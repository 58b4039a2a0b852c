"""Configuration management for GraphQL Forge.

A configuration directory holds one ``forge.yaml`` with the server
settings and any number of sibling ``*.yaml`` files, one tool each.
Process-level options come from ``FORGE_*`` environment variables and
are overridden by command-line flags.
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.logging import get_logger
from shared.models import ServerSettings, ToolDefinition

logger = get_logger(__name__)

SETTINGS_FILENAME = "forge.yaml"
TOOL_FILE_PATTERN = "*.yaml"


class ConfigError(Exception):
    """Configuration could not be loaded."""
    pass


class AppSettings(BaseSettings):
    """Process configuration."""
    config: Optional[str] = Field(default=None, description="Configuration directory")
    debug: bool = Field(default=False)
    http: Optional[str] = Field(default=None, description="HTTP bind address")

    model_config = SettingsConfigDict(
        env_prefix="FORGE_",
        env_file=".env",
        extra="ignore"
    )


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML document that must be a mapping.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(path)

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_server_settings(config_dir: str | Path) -> ServerSettings:
    """
    Load the server settings document from a configuration directory.

    Raises:
        ConfigError: If the settings file is missing or invalid
    """
    path = Path(config_dir) / SETTINGS_FILENAME
    data = load_yaml_config(path)

    try:
        return ServerSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid {path}: {e}") from e


def load_tool_definition(path: str | Path) -> ToolDefinition:
    """
    Load one tool definition.

    Raises:
        ConfigError: If the file is unreadable or does not describe a tool
    """
    path = Path(path)
    data = load_yaml_config(path)
    data["source"] = str(path)

    try:
        return ToolDefinition.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid tool definition {path}: {e}") from e


def discover_tool_files(config_dir: str | Path) -> list[Path]:
    """
    List tool definition files in a configuration directory.

    Raises:
        ConfigError: If the directory does not exist
    """
    path = Path(config_dir)
    if not path.is_dir():
        raise ConfigError(f"configuration directory not found: {path}")

    return sorted(
        f for f in path.glob(TOOL_FILE_PATTERN)
        if f.name != SETTINGS_FILENAME and f.is_file()
    )


def load_tool_definitions(config_dir: str | Path) -> list[ToolDefinition]:
    """
    Load every tool definition in a configuration directory.

    Files that fail to load are skipped with a warning.
    """
    definitions = []

    for tool_file in discover_tool_files(config_dir):
        try:
            definitions.append(load_tool_definition(tool_file))
        except ConfigError as e:
            logger.warning("Skipping tool file", file=str(tool_file), error=str(e))

    return definitions


def resolve_app_settings(
    config: Optional[str] = None,
    debug: bool = False,
    http: Optional[str] = None
) -> AppSettings:
    """
    Merge command-line values over the ``FORGE_*`` environment.

    Raises:
        ConfigError: If no configuration directory is set
    """
    try:
        settings = AppSettings()
    except ValidationError as e:
        raise ConfigError(f"invalid FORGE_* environment: {e}") from e

    resolved = AppSettings.model_construct(
        config=config or settings.config,
        debug=debug or settings.debug,
        http=http or settings.http,
    )

    if not resolved.config:
        raise ConfigError(
            "configuration directory must be set via --forge-config "
            "or the FORGE_CONFIG environment variable"
        )
    return resolved
