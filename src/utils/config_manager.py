"""
Configuration Management Module
Handles loading and validation of the YAML configuration for fork PR mirroring
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from jsonschema import ValidationError, validate

DEFAULT_CONFIG_PATH = Path("config/mirror.yaml")
DEFAULT_TRIGGER_MARKER = "netflix build (purposefully written typo)"
DEFAULT_TITLE_PREFIX = "[PREVIEW COPY] "


@dataclass
class GitSettings:
    """Identity and transport policy for the local clone"""
    user_name: str = "GitHub Actions"
    user_email: str = "actions@github.com"
    timeout_seconds: int = 300


@dataclass
class GitHubSettings:
    """Endpoints and request policy for the GitHub REST API"""
    api_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    timeout_seconds: int = 30


@dataclass
class MirrorConfig:
    """Complete mirror configuration"""
    trunk_branch: str = "main"
    remote: str = "origin"
    title_prefix: str = DEFAULT_TITLE_PREFIX
    # Downstream build automation matches this text exactly, typo included.
    trigger_marker: str = DEFAULT_TRIGGER_MARKER
    temp_branch_prefix: str = "temp-"
    timezone: str = "Asia/Kolkata"
    post_acknowledgement: bool = True
    log_level: str = "INFO"
    git: GitSettings = field(default_factory=GitSettings)
    github: GitHubSettings = field(default_factory=GitHubSettings)

    def __post_init__(self):
        """Validate values the schema cannot express"""
        if not self.trigger_marker.strip():
            raise ValueError("trigger_marker cannot be blank")
        if not self.temp_branch_prefix:
            raise ValueError("temp_branch_prefix cannot be empty")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {self.timezone}") from e


class ConfigLoader:
    """Loads and validates mirror configuration files"""

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "trunk_branch": {"type": "string", "minLength": 1},
            "remote": {"type": "string", "minLength": 1},
            "title_prefix": {"type": "string"},
            "trigger_marker": {"type": "string", "minLength": 1},
            "temp_branch_prefix": {"type": "string", "minLength": 1},
            "timezone": {"type": "string", "minLength": 1},
            "post_acknowledgement": {"type": "boolean"},
            "log_level": {
                "type": "string",
                "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            },
            "git": {
                "type": "object",
                "properties": {
                    "user_name": {"type": "string", "minLength": 1},
                    "user_email": {"type": "string", "minLength": 1},
                    "timeout_seconds": {"type": "integer", "minimum": 1}
                },
                "additionalProperties": False
            },
            "github": {
                "type": "object",
                "properties": {
                    "api_url": {"type": "string", "minLength": 1},
                    "server_url": {"type": "string", "minLength": 1},
                    "timeout_seconds": {"type": "integer", "minimum": 1}
                },
                "additionalProperties": False
            }
        },
        "additionalProperties": False
    }

    @classmethod
    def load_config(cls, config_path: str) -> MirrorConfig:
        """
        Load and validate configuration from YAML file

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            MirrorConfig object with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the YAML is invalid or doesn't match the schema
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as file:
                config_data = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        return cls.from_dict(config_data or {})

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> MirrorConfig:
        """Validate raw configuration data and build a MirrorConfig"""
        try:
            validate(instance=config_data, schema=cls.CONFIG_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e.message}") from e
        return cls._build_config(config_data)

    @classmethod
    def _build_config(cls, config_data: Dict[str, Any]) -> MirrorConfig:
        """Build MirrorConfig object from validated configuration data"""
        defaults = MirrorConfig()

        git_data = config_data.get('git', {})
        git = GitSettings(
            user_name=git_data.get('user_name', defaults.git.user_name),
            user_email=git_data.get('user_email', defaults.git.user_email),
            timeout_seconds=git_data.get('timeout_seconds', defaults.git.timeout_seconds)
        )

        github_data = config_data.get('github', {})
        github = GitHubSettings(
            api_url=github_data.get('api_url', defaults.github.api_url),
            server_url=github_data.get('server_url', defaults.github.server_url),
            timeout_seconds=github_data.get('timeout_seconds', defaults.github.timeout_seconds)
        )

        return MirrorConfig(
            trunk_branch=config_data.get('trunk_branch', defaults.trunk_branch),
            remote=config_data.get('remote', defaults.remote),
            title_prefix=config_data.get('title_prefix', defaults.title_prefix),
            trigger_marker=config_data.get('trigger_marker', defaults.trigger_marker),
            temp_branch_prefix=config_data.get('temp_branch_prefix', defaults.temp_branch_prefix),
            timezone=config_data.get('timezone', defaults.timezone),
            post_acknowledgement=config_data.get('post_acknowledgement', defaults.post_acknowledgement),
            log_level=config_data.get('log_level', defaults.log_level),
            git=git,
            github=github
        )


def load_config_with_env_substitution(config_path: str) -> MirrorConfig:
    """
    Load configuration with environment variable substitution

    Configuration values may reference environment variables using the
    format: ${ENV_VAR_NAME} or ${ENV_VAR_NAME:default_value}

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        MirrorConfig object with environment variables substituted
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as file:
        content = file.read()

    env_pattern = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')

    def replace_env_var(match):
        var_name = match.group(1)
        default_provided = match.group(2) is not None
        default_value = match.group(2) if default_provided else None

        env_value = os.getenv(var_name)

        # Empty strings count as missing so YAML does not coerce them to null
        if env_value not in (None, ''):
            return env_value

        if default_provided:
            return default_value or ''

        raise ValueError(
            f"Environment variable '{var_name}' is required but not set for configuration file '{config_path}'."
        )

    content = env_pattern.sub(replace_env_var, content)

    try:
        config_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML after environment substitution: {e}") from e

    return ConfigLoader.from_dict(config_data or {})


def load_mirror_config(config_path: Optional[Path] = None) -> MirrorConfig:
    """
    Resolve the configuration for a mirror run

    An explicit path must exist. Without one, config/mirror.yaml is used when
    present, otherwise built-in defaults apply.
    """
    if config_path is not None:
        return load_config_with_env_substitution(str(Path(config_path).expanduser()))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config_with_env_substitution(str(DEFAULT_CONFIG_PATH))
    return MirrorConfig()
