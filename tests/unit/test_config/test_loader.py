"""Unit tests for the configuration loader."""

import hashlib
from pathlib import Path

import pytest

from personal_feed.config import ConfigLoader, ConfigValidationError


class TestConfigLoader:
    """Tests for ConfigLoader.load."""

    def test_loads_valid_file(self, tmp_path: Path) -> None:
        """A valid YAML file should produce a config and checksum."""
        content = b"version: '1.0'\nretrieval:\n  pool_size: 20\nfilter:\n  per_source_max: 3\n"
        path = tmp_path / "pipeline.yaml"
        path.write_bytes(content)

        loaded = ConfigLoader().load(path)

        assert loaded.config.retrieval.pool_size == 20
        assert loaded.config.filter.per_source_max == 3
        assert loaded.config.scoring.final_size == 30
        assert loaded.checksum == hashlib.sha256(content).hexdigest()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        """An empty file should validate to the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ConfigLoader().load(path).config.retrieval.pool_size == 35

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file should raise with a file_not_found error."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(tmp_path / "nope.yaml")

        assert exc_info.value.errors[0]["type"] == "file_not_found"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Broken YAML should raise with a parse error."""
        path = tmp_path / "bad.yaml"
        path.write_text("retrieval: [unclosed\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)

        assert exc_info.value.errors[0]["type"] == "yaml_parse_error"

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        """A list at the top level should be rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)

        assert exc_info.value.errors[0]["loc"] == "<root>"

    def test_schema_errors_have_hints(self, tmp_path: Path) -> None:
        """Schema violations should be reported with field hints."""
        path = tmp_path / "invalid.yaml"
        path.write_text("retrieval:\n  pool_size: 0\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)

        formatted = exc_info.value.format_errors()
        assert formatted[0].startswith("retrieval.pool_size:")
        assert "Must be between 1 and 500." in formatted[0]
