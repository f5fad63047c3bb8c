"""Configuration management for the PRISMA editor.

Loads configuration from:
1. prisma.toml (defaults)
2. Environment variables (overrides)
"""

import os
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

CONFIG_FILE_NAME = "prisma.toml"


@dataclass
class EditorConfig:
    """Editor session behaviour."""

    debounce_seconds: float = 2.0
    history_limit: int = 50
    auto_save: bool = True


@dataclass
class StorageConfig:
    """Portfolio persistence configuration."""

    backend: str = "json"  # "memory" | "json" | "http"
    path: str = "~/.prisma/portfolios"  # json backend
    base_url: str = ""  # http backend (also PRISMA_API_URL)
    api_token: str = ""  # http backend (also PRISMA_API_TOKEN)
    timeout: float = 30


@dataclass
class AIConfig:
    """AI enhancement endpoint configuration."""

    enabled: bool = True
    base_url: str = ""  # Defaults to storage.base_url
    api_token: str = ""
    timeout: float = 60


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """Main configuration container."""

    editor: EditorConfig = field(default_factory=EditorConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            editor=EditorConfig(**data.get("editor", {})),
            storage=StorageConfig(**data.get("storage", {})),
            ai=AIConfig(**data.get("ai", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        """Convert to a plain dict, hiding tokens unless redact=False."""
        data = asdict(self)
        if redact:
            for section in ("storage", "ai"):
                if data[section].get("api_token"):
                    data[section]["api_token"] = "***"
        return data


def find_config_file() -> Path | None:
    """Find prisma.toml in current or parent directories.

    Returns:
        Path to prisma.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to prisma.toml

    Returns:
        Config object with merged settings.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    env_overrides = {
        "editor": {
            "debounce_seconds": _float_or_none(os.getenv("PRISMA_DEBOUNCE_SECONDS")),
            "history_limit": _int_or_none(os.getenv("PRISMA_HISTORY_LIMIT")),
        },
        "storage": {
            "backend": os.getenv("PRISMA_STORE"),
            "path": os.getenv("PRISMA_STORE_PATH"),
            "base_url": os.getenv("PRISMA_API_URL"),
            "api_token": os.getenv("PRISMA_API_TOKEN"),
        },
        "ai": {
            "base_url": os.getenv("PRISMA_AI_URL"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        if section not in config_data:
            config_data[section] = {}
        for key, value in values.items():
            if value is not None:
                config_data[section][key] = value

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _float_or_none(value: str | None) -> float | None:
    """Convert string to float, or return None."""
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
