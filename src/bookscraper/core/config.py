"""Configuration models for bookscraper.

Settings come from an optional YAML file and are overridden by CLI options.
All models are pydantic v2 so that bad values are rejected at binding time
with a precise field path.

Example configuration::

    processing:
      input_directory: ./scans
      output_directory: ./pages
      language: deu
      retry:
        max_retries: 5
        retry_delay_seconds: 2.5
    logging:
      level: DEBUG
      format: json
    contracts_dir: ./contracts
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from bookscraper.core.constants import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_SECONDS
from bookscraper.core.errors import FileAccessFailure, InvalidConfigurationFailure


class RetryConfig(BaseModel):
    """Configuration for the execution boundary's retry policy."""

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=0,
        description="Retries allowed after the first failed attempt (0 disables retries)",
    )
    retry_delay_seconds: float = Field(
        default=DEFAULT_RETRY_DELAY_SECONDS,
        ge=0,
        allow_inf_nan=False,
        description="Base delay for exponential backoff (seconds)",
    )

    @field_validator("retry_delay_seconds")
    @classmethod
    def _representable_delay(cls, v: float) -> float:
        try:
            timedelta(seconds=v)
        except OverflowError as e:
            raise ValueError("is too large to be a delay") from e
        return v

    @property
    def retry_delay(self) -> timedelta:
        return timedelta(seconds=self.retry_delay_seconds)


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable",
    )
    file_path: Path | None = Field(
        default=None,
        description="Optional path for rotated log file output",
    )
    max_file_size_mb: int = Field(
        default=10,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )
    include_timestamps: bool = Field(
        default=True,
        description="Include ISO8601 UTC timestamps in log entries",
    )


class ProcessingOptions(BaseModel):
    """Options for processing one book or a batch of books."""

    input_directory: Path = Field(
        default=Path("input"),
        description="Directory whose sub-directories are books (process-all)",
    )
    output_directory: Path = Field(
        default=Path("output"),
        description="Directory that receives the page YAML files",
    )
    ocr_engine: str = Field(default="Tesseract", description="OCR engine identifier")
    language: str = Field(default="eng", description="OCR language code")
    enable_logging: bool = Field(default=True, description="Emit per-page log records")
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("input_directory", "output_directory", mode="before")
    @classmethod
    def _require_path(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("must not be empty or whitespace")
        return v

    @field_validator("ocr_engine", "language")
    @classmethod
    def _require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty or whitespace")
        return v.strip()


class AppConfig(BaseModel):
    """Top-level configuration file model."""

    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    logging: LogConfig = Field(default_factory=LogConfig)
    contracts_dir: Path | None = Field(
        default=None,
        description="Directory holding the error contracts (defaults to the packaged ones)",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> AppConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> AppConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def load_app_config(path: Path | None) -> AppConfig:
    """Load an AppConfig, raising taxonomy failures instead of library errors.

    Args:
        path: Config file path, or None for defaults.

    Raises:
        FileAccessFailure: The file does not exist or cannot be read.
        InvalidConfigurationFailure: The file is not valid YAML or does not
            match the configuration schema.
    """
    if path is None:
        return AppConfig()
    try:
        return AppConfig.from_yaml(path)
    except OSError as e:
        raise FileAccessFailure(
            f"Cannot read configuration file: {path}", str(path)
        ) from e
    except yaml.YAMLError as e:
        raise InvalidConfigurationFailure(
            "Configuration file is not valid YAML.",
            f"YAML parse error in {path}: {e}",
            offending_input=str(path),
        ) from e
    except ValidationError as e:
        raise InvalidConfigurationFailure(
            "Configuration file is invalid.",
            f"{path}: {_summarize(e)}",
            offending_input=str(path),
        ) from e


def bind_processing_options(
    base: ProcessingOptions | None = None,
    *,
    input_directory: Path | str | None = None,
    output_directory: Path | str | None = None,
    ocr_engine: str | None = None,
    language: str | None = None,
    max_retries: int | None = None,
    retry_delay_seconds: float | None = None,
) -> ProcessingOptions:
    """Overlay CLI overrides on file (or default) options and validate.

    Overrides left as None keep the base value.

    Raises:
        InvalidConfigurationFailure: The merged options are invalid.
    """
    data = (base or ProcessingOptions()).model_dump()
    overrides = {
        "input_directory": input_directory,
        "output_directory": output_directory,
        "ocr_engine": ocr_engine,
        "language": language,
    }
    for key, value in overrides.items():
        if value is not None:
            data[key] = value
    if max_retries is not None:
        data["retry"]["max_retries"] = max_retries
    if retry_delay_seconds is not None:
        data["retry"]["retry_delay_seconds"] = retry_delay_seconds

    try:
        return ProcessingOptions.model_validate(data)
    except ValidationError as e:
        supplied = {k: v for k, v in overrides.items() if v is not None}
        if max_retries is not None:
            supplied["max_retries"] = max_retries
        if retry_delay_seconds is not None:
            supplied["retry_delay_seconds"] = retry_delay_seconds
        raise InvalidConfigurationFailure(
            "Invalid book processing options.",
            _summarize(e),
            offending_input=supplied or None,
        ) from e
