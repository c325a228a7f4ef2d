"""Configuration management for specrunner."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class RunnerConfig(BaseModel):
    """Scheduler configuration."""

    default_timeout_ms: float = Field(
        default=200, description="Time a test or hook may take before it is marked as timed out"
    )

    @field_validator("default_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be greater than 0 ms")
        return v


class ReportConfig(BaseModel):
    """Default reporter configuration."""

    title: str = Field(default="Test Results", description="Heading printed above the summary")
    show_passed: bool = Field(default=False, description="List contexts whose assertions all passed")
    show_tracebacks: bool = Field(default=True, description="Print tracebacks of test errors")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Level of the 'specrunner' logger")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()


class SpecRunnerConfig(BaseModel):
    """Main configuration for specrunner."""

    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "SpecRunnerConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "SpecRunnerConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        config_names = ["specrunner.json", ".specrunner.json"]

        current = start_dir.resolve()
        while True:
            for name in config_names:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError("No configuration file found. Create specrunner.json")

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


def get_default_config() -> SpecRunnerConfig:
    """Return a default configuration."""
    return SpecRunnerConfig()


def configure_logging(config: SpecRunnerConfig) -> logging.Logger:
    """Apply the configured level to the package logger."""
    logger = logging.getLogger("specrunner")
    logger.setLevel(config.logging.level)
    return logger
