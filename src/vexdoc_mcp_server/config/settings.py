"""
Configuration management for the VEX document MCP server.

Handles loading, validation, and management of server configuration
from files and environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..vex.client import DEFAULT_AUTHOR

CONFIG_PATH_ENV = "VEXDOC_MCP_CONFIG_PATH"
LOG_LEVEL_ENV = "VEXDOC_MCP_LOG_LEVEL"
DEFAULT_AUTHOR_ENV = "VEXDOC_MCP_DEFAULT_AUTHOR"


class ServerConfig(BaseModel):
    """Configuration for MCP server behavior."""

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper


class VexConfig(BaseModel):
    """Configuration for VEX document generation."""

    default_author: str = Field(
        default=DEFAULT_AUTHOR, description="Author used when a request names none"
    )

    @field_validator("default_author")
    @classmethod
    def validate_default_author(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("default_author cannot be empty")
        return v


class ToolConfig(BaseModel):
    """Configuration for individual tools."""

    enabled: bool = Field(default=True, description="Whether tool is enabled")


class ToolsConfig(BaseModel):
    """Configuration for all available tools."""

    create_vex_statement: ToolConfig = Field(default_factory=ToolConfig)
    merge_vex_documents: ToolConfig = Field(default_factory=ToolConfig)


class Config(BaseModel):
    """Main configuration object."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="0.1.0", description="Configuration version")
    server: ServerConfig = Field(default_factory=ServerConfig)
    vex: VexConfig = Field(default_factory=VexConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment variables.

    Args:
        config_path: Path to configuration file. If None, looks for
                    VEXDOC_MCP_CONFIG_PATH environment variable.

    Returns:
        Loaded and validated configuration

    Raises:
        FileNotFoundError: If config file specified but not found
        ValueError: If configuration is invalid
    """
    if config_path is None:
        env_path = os.getenv(CONFIG_PATH_ENV)
        if env_path:
            config_path = Path(env_path)

    config_data: Dict[str, Any] = {}
    if config_path and config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)
    elif config_path:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    env_overrides: Dict[str, Any] = {}

    log_level = os.getenv(LOG_LEVEL_ENV)
    if log_level:
        env_overrides.setdefault("server", {})["log_level"] = log_level

    default_author = os.getenv(DEFAULT_AUTHOR_ENV)
    if default_author:
        env_overrides.setdefault("vex", {})["default_author"] = default_author

    if env_overrides:
        config_data = _deep_merge(config_data, env_overrides)

    return Config(**config_data)


def create_default_config(config_path: Path) -> None:
    """
    Create a default configuration file.

    Args:
        config_path: Path where to create the configuration file
    """
    default_config = Config().model_dump()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(default_config, f, indent=2)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
