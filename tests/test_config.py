"""Tests for analysis configuration."""

import pytest

from repostruct.config import (
    DEFAULT_DEPTH_LIMIT,
    DEFAULT_LARGE_FILE_BYTES,
    DEFAULT_NESTING_THRESHOLD,
    DEFAULT_SAMPLE_CAP,
    AnalysisConfig,
)
from repostruct.errors import ConfigurationError


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self):
        """Defaults match the documented limits."""
        config = AnalysisConfig()

        assert config.depth_limit == DEFAULT_DEPTH_LIMIT == 3
        assert config.sample_cap == DEFAULT_SAMPLE_CAP == 1000
        assert config.nesting_threshold == DEFAULT_NESTING_THRESHOLD == 4
        assert config.large_file_bytes == DEFAULT_LARGE_FILE_BYTES == 5 * 1024 * 1024
        assert config.exclude == ()
        assert config.timeout_seconds is None

    def test_probe_depth_covers_nesting_threshold(self):
        """The walk descends one level past the nesting threshold."""
        assert AnalysisConfig().probe_depth == 5
        assert AnalysisConfig(depth_limit=8).probe_depth == 8

    def test_effective_workers(self):
        """Explicit workers win; the default is bounded."""
        assert AnalysisConfig(workers=3).effective_workers == 3
        assert 1 <= AnalysisConfig().effective_workers <= 8

    def test_frozen(self):
        """Configs cannot be changed after creation."""
        config = AnalysisConfig()
        with pytest.raises(ValueError):
            config.depth_limit = 10  # type: ignore[misc]


class TestValidation:
    """Tests for rejected values."""

    @pytest.mark.parametrize(
        "values",
        [
            {"depth_limit": 0},
            {"sample_cap": -1},
            {"nesting_threshold": 0},
            {"workers": 0},
            {"timeout_seconds": 0},
            {"unknown_knob": True},
        ],
    )
    def test_invalid_values(self, values):
        """Invalid values raise ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc_info:
            AnalysisConfig.create(**values)
        assert exc_info.value.stage == "config"

    def test_configuration_error_is_value_error(self):
        """Callers catching ValueError also see configuration errors."""
        with pytest.raises(ValueError):
            AnalysisConfig.create(depth_limit=-5)


class TestFromEnv:
    """Tests for environment-driven configuration."""

    def test_reads_environment(self, monkeypatch):
        """REPOSTRUCT_* variables populate the config."""
        monkeypatch.setenv("REPOSTRUCT_DEPTH_LIMIT", "5")
        monkeypatch.setenv("REPOSTRUCT_SAMPLE_CAP", "250")
        monkeypatch.setenv("REPOSTRUCT_TIMEOUT", "2.5")
        monkeypatch.setenv("REPOSTRUCT_CATALOG", "/tmp/rules.json")

        config = AnalysisConfig.from_env()

        assert config.depth_limit == 5
        assert config.sample_cap == 250
        assert config.timeout_seconds == 2.5
        assert config.catalog_path == "/tmp/rules.json"

    def test_exclude_is_comma_separated(self, monkeypatch):
        """REPOSTRUCT_EXCLUDE splits on commas and drops blanks."""
        monkeypatch.setenv("REPOSTRUCT_EXCLUDE", "dist, build ,,vendor")

        assert AnalysisConfig.from_env().exclude == ("dist", "build", "vendor")

    def test_overrides_win(self, monkeypatch):
        """Explicit overrides beat the environment."""
        monkeypatch.setenv("REPOSTRUCT_DEPTH_LIMIT", "5")

        assert AnalysisConfig.from_env(depth_limit=2).depth_limit == 2

    def test_none_overrides_ignored(self, monkeypatch):
        """None overrides leave environment values in place."""
        monkeypatch.setenv("REPOSTRUCT_SAMPLE_CAP", "42")

        config = AnalysisConfig.from_env(sample_cap=None, exclude=None)

        assert config.sample_cap == 42
        assert config.exclude == ()

    def test_blank_values_ignored(self, monkeypatch):
        """Empty variables fall back to defaults."""
        monkeypatch.setenv("REPOSTRUCT_DEPTH_LIMIT", "  ")

        assert AnalysisConfig.from_env().depth_limit == DEFAULT_DEPTH_LIMIT

    def test_invalid_environment(self, monkeypatch):
        """Unparseable values raise ConfigurationError."""
        monkeypatch.setenv("REPOSTRUCT_SAMPLE_CAP", "lots")

        with pytest.raises(ConfigurationError, match="sample_cap"):
            AnalysisConfig.from_env()
