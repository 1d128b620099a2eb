"""
Configuration for Tapestry persistence.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Local persistent store configuration."""

    backend: str = "sqlite"  # sqlite, memory
    db_path: str = "data/tapestry.db"
    # Total bytes the store may hold (None = unlimited)
    quota_bytes: int | None = None


class FileBridgeConfig(BaseModel):
    """External file bridge configuration."""

    mode: str = "auto"  # auto, picker, download
    downloads_dir: str = "downloads"
    indent: int = 2


class AutosaveConfig(BaseModel):
    """Autosave configuration."""

    enabled: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class Config(BaseModel):
    """Main configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    file_bridge: FileBridgeConfig = Field(default_factory=FileBridgeConfig)
    autosave: AutosaveConfig = Field(default_factory=AutosaveConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            TAPESTRY_STORAGE_BACKEND: Store backend (sqlite, memory)
            TAPESTRY_DB_PATH: SQLite database path
            TAPESTRY_STORAGE_QUOTA_BYTES: Maximum bytes held by the store
            TAPESTRY_FILE_BRIDGE_MODE: File bridge (auto, picker, download)
            TAPESTRY_DOWNLOADS_DIR: Target directory for download fallback
            TAPESTRY_EXPORT_INDENT: JSON indentation for exported files
            TAPESTRY_AUTOSAVE_ENABLED: Enable hash-gated autosave
            TAPESTRY_LOG_LEVEL: Log level
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None, cast: type | None = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            cast = cast or (type(default) if default is not None else None)
            # Convert boolean strings
            if cast is bool:
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            if cast is int:
                return int(value)
            if cast is float:
                return float(value)
            return value

        return cls(
            storage=StorageConfig(
                backend=get_env("TAPESTRY_STORAGE_BACKEND", "sqlite"),
                db_path=get_env("TAPESTRY_DB_PATH", "data/tapestry.db"),
                quota_bytes=get_env("TAPESTRY_STORAGE_QUOTA_BYTES", None, cast=int),
            ),
            file_bridge=FileBridgeConfig(
                mode=get_env("TAPESTRY_FILE_BRIDGE_MODE", "auto"),
                downloads_dir=get_env("TAPESTRY_DOWNLOADS_DIR", "downloads"),
                indent=get_env("TAPESTRY_EXPORT_INDENT", 2),
            ),
            autosave=AutosaveConfig(
                enabled=get_env("TAPESTRY_AUTOSAVE_ENABLED", True),
            ),
            logging=LoggingConfig(
                level=get_env("TAPESTRY_LOG_LEVEL", "INFO"),
                log_to_file=get_env("TAPESTRY_LOG_TO_FILE", True),
                log_dir=get_env("TAPESTRY_LOG_DIR", "logs"),
                file_rotation=get_env("TAPESTRY_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("TAPESTRY_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("TAPESTRY_LOG_COMPRESSION", "zip"),
                serialize=get_env("TAPESTRY_LOG_SERIALIZE", True),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        # Merge: env sections that differ from defaults override YAML
        final_dict = {**config_dict}
        default = cls()
        for section in ("storage", "file_bridge", "autosave", "logging"):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
