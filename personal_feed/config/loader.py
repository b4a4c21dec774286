"""Configuration loader with validation."""

import hashlib
import time
from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from personal_feed.config.error_hints import (
    format_validation_error,
    get_error_hint,
    summarize_validation_error,
)
from personal_feed.config.schemas import PipelineConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")

    def format_errors(self) -> list[str]:
        """Render each error with its remediation hint."""
        return [
            format_validation_error(e["loc"], e["msg"], e["type"]) for e in self.errors
        ]


@dataclass(frozen=True)
class LoadedConfig:
    """A validated configuration and the checksum of its source file."""

    config: PipelineConfig
    file_path: str
    checksum: str
    validation_duration_ms: float


class ConfigLoader:
    """Loads and validates a pipeline YAML file.

    The returned configuration is frozen; components receive it at
    construction and never mutate it.
    """

    def __init__(self, run_id: str = "config") -> None:
        """Initialize the loader.

        Args:
            run_id: Identifier used to tag log events.
        """
        self._log = logger.bind(component="config", run_id=run_id)

    @staticmethod
    def _compute_checksum(content: bytes) -> str:
        """Compute SHA-256 checksum of content."""
        return hashlib.sha256(content).hexdigest()

    def load(self, file_path: Path) -> LoadedConfig:
        """Load and validate a pipeline configuration file.

        Args:
            file_path: Path to the YAML file.

        Returns:
            LoadedConfig with the validated configuration.

        Raises:
            ConfigValidationError: If the file is missing, unparseable, or
                does not match the schema.
        """
        start_time = time.perf_counter()
        path_str = str(file_path)

        try:
            content_bytes = file_path.read_bytes()
        except FileNotFoundError as exc:
            raise ConfigValidationError(
                [self._error("<file>", str(exc), "file_not_found")], path_str
            ) from exc

        try:
            parsed = yaml.safe_load(content_bytes.decode("utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(
                [self._error("<file>", str(exc), "yaml_parse_error")], path_str
            ) from exc

        if not isinstance(parsed, dict):
            raise ConfigValidationError(
                [self._error("<root>", "Top level must be a mapping", "dict_type")],
                path_str,
            )

        try:
            config = PipelineConfig.model_validate(parsed)
        except ValidationError as exc:
            errors = summarize_validation_error(exc)
            self._log.error(
                "config_validation_failed",
                file_path=path_str,
                error_count=len(errors),
            )
            raise ConfigValidationError(errors, path_str) from exc

        duration_ms = (time.perf_counter() - start_time) * 1000
        checksum = self._compute_checksum(content_bytes)
        self._log.info(
            "config_loaded",
            file_path=path_str,
            checksum=checksum,
            duration_ms=round(duration_ms, 2),
        )
        return LoadedConfig(
            config=config,
            file_path=path_str,
            checksum=checksum,
            validation_duration_ms=duration_ms,
        )

    @staticmethod
    def _error(location: str, message: str, error_type: str) -> dict[str, str]:
        return {
            "loc": location,
            "msg": message,
            "type": error_type,
            "hint": get_error_hint(error_type),
        }
