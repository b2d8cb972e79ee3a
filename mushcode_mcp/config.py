"""
Configuration module for the MUSHCODE MCP Server.

Uses pydantic-settings for configuration management with environment variable support.
Environment variables use MUSHCODE_ prefix (e.g., MUSHCODE_DATA_PATH).
An optional YAML file (mushcode-mcp.yaml, or MUSHCODE_CONFIG_FILE) provides
defaults; environment variables take precedence over it.
"""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_FILE = Path(os.environ.get("MUSHCODE_CONFIG_FILE", "mushcode-mcp.yaml"))


class Settings(BaseSettings):
    """Application settings with environment variable support.

    Environment variables:
    - MUSHCODE_DATA_PATH: Directory holding the knowledge snapshot
    - MUSHCODE_DEFAULT_SERVER_TYPE: Dialect assumed when a tool call names none
    - MUSHCODE_SUPPORTED_SERVER_TYPES: JSON list of accepted dialect names
    - MUSHCODE_MAX_INPUT_LENGTH: Maximum length of code/query arguments
    - MUSHCODE_MAX_RESULTS: Upper bound for result counts requested by callers
    - MUSHCODE_LOG_LEVEL: Log level name (DEBUG, INFO, WARNING, ERROR)
    """

    server_name: str = "mushcode-mcp-server"
    data_path: Path = Path("data") / "knowledge"
    default_server_type: str = "PennMUSH"
    supported_server_types: list[str] = Field(
        default_factory=lambda: ["PennMUSH", "TinyMUSH", "RhostMUSH", "TinyMUX"]
    )
    max_input_length: int = 10000
    max_results: int = 50
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="MUSHCODE_", yaml_file=CONFIG_FILE)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


# Global settings instance
settings = Settings()

# Fixed vocabularies of the knowledge model
PATTERN_CATEGORIES = ("command", "function", "trigger", "attribute", "utility")
DIFFICULTIES = ("beginner", "intermediate", "advanced")
SECURITY_LEVELS = ("public", "player", "builder", "wizard", "god")
SEVERITY_ORDER = {"low": 1, "medium": 2, "high": 3, "critical": 4}

# Overlap thresholds used by the code-driven matchers
OPTIMIZATION_THRESHOLD = 0.3
OPTIMIZATION_LIMIT = 5
SIMILAR_EXAMPLE_THRESHOLD = 0.2
RELATED_BY_TAG_LIMIT = 3

# Code analysis
DETAIL_LEVELS = ("basic", "intermediate", "advanced")
FORMAT_STYLES = ("readable", "compact", "custom")
COMPRESSION_LEVELS = ("minimal", "moderate", "aggressive")
SEVERITY_WEIGHTS = {"low": 5, "medium": 10, "high": 20, "critical": 30}
MAX_NAME_LENGTH = 32
MAX_NESTING_DEPTH = 10
STRICT_LINE_LENGTH = 200
