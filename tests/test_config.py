"""
Configuration Module Tests
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "python"))

from sms_ingest.config import (
    DEFAULT_TIME_WINDOW_MS,
    MAX_TIME_WINDOW_MS,
    MIN_TIME_WINDOW_MS,
    IngestionConfig,
    clamp_window,
    load_config,
)


class TestClampWindow:
    """Tests for window clamping."""

    @pytest.mark.parametrize("window", [-5, 0, 1, 59_999, 60_000, 300_000, 1_800_000, 1_800_001, 10**9])
    def test_clamp(self, window):
        """Test the used window is min(max(w, MIN), MAX)."""
        assert clamp_window(window) == min(max(window, 60_000), 1_800_000)

    def test_constants(self):
        """Test the window bounds."""
        assert DEFAULT_TIME_WINDOW_MS == 300_000
        assert MIN_TIME_WINDOW_MS == 60_000
        assert MAX_TIME_WINDOW_MS == 1_800_000


class TestIngestionConfig:
    """Tests for the configuration record."""

    def test_defaults(self):
        """Test built-in defaults."""
        config = IngestionConfig()

        assert config.duplicate_window_ms == 300_000
        assert config.high_confidence_threshold == 0.8
        assert config.amount_cap == Decimal("1000000")
        assert config.similarity_threshold == 0.80
        assert config.amount_tolerance == Decimal("0.01")

    def test_window_property_clamps(self):
        """Test window_ms reports the clamped value."""
        assert IngestionConfig(duplicate_window_ms=5).window_ms == 60_000

    def test_from_dict_partial(self):
        """Test missing sections keep their defaults."""
        config = IngestionConfig.from_dict({"duplicates": {"window_ms": 120000}})

        assert config.duplicate_window_ms == 120_000
        assert config.amount_cap == Decimal("1000000")

    def test_round_trip_dict(self):
        """Test to_dict output is accepted by from_dict."""
        config = IngestionConfig(duplicate_window_ms=600_000, amount_cap=Decimal("5000"))
        assert IngestionConfig.from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Tests for loading the YAML file."""

    def test_shipped_config(self, config_dir, ingestion_settings):
        """Test the repository configuration file loads."""
        config = load_config(config_dir)

        assert config.duplicate_window_ms == ingestion_settings["duplicates"]["window_ms"]
        assert config.high_confidence_threshold == 0.8

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test an empty directory yields defaults."""
        assert load_config(tmp_path) == IngestionConfig()

    def test_custom_file(self, tmp_path):
        """Test values are read from the file."""
        (tmp_path / "sms_ingestion.yaml").write_text(yaml.safe_dump({
            "duplicates": {"window_ms": 99_999_999},
            "validation": {"amount_cap": 25000},
        }))

        config = load_config(tmp_path)

        assert config.duplicate_window_ms == 99_999_999
        assert config.window_ms == 1_800_000
        assert config.amount_cap == Decimal("25000")

    def test_empty_file(self, tmp_path):
        """Test an empty YAML file yields defaults."""
        (tmp_path / "sms_ingestion.yaml").write_text("")
        assert load_config(tmp_path) == IngestionConfig()
