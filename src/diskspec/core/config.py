"""
diskspec configuration management.

Provides centralized configuration with validation using Pydantic.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path.home() / ".diskspec" / "config.json"


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_enabled: bool = False
    console_enabled: bool = True
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: Path.home() / ".diskspec" / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class ProbeConfig(BaseModel):
    """Configuration for resolving block devices."""

    lsblk: str = "lsblk"
    timeout_seconds: int = Field(default=30, ge=1, le=600)


class InstallerConfig(BaseModel):
    """Configuration for the install phase."""

    test_mode: bool = False


class DiskSpecConfig(BaseModel):
    """Main diskspec configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    installer: InstallerConfig = Field(default_factory=InstallerConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> DiskSpecConfig:
        """Load configuration from file or create default."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def ensure_directories(self) -> None:
        """Create all required directories."""
        if self.logging.file_enabled:
            self.logging.log_directory.mkdir(parents=True, exist_ok=True)


def load_config(config_path: Path | None = None) -> DiskSpecConfig:
    """Load or create configuration."""
    config = DiskSpecConfig.load(config_path)
    config.ensure_directories()
    return config
