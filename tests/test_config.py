"""Tests for settings loading and logging setup."""

import json
import logging

import pytest
from pydantic import ValidationError

from street_alignment.config import BatchingConfig, Settings, StreetsConfig, load_settings
from street_alignment.logging_config import configure_logging


class TestSettings:
    def test_defaults(self):
        settings = load_settings()
        assert settings.streets.batching.bearing_tolerance == 2.5
        assert settings.streets.batching.min_batch_length == 50.0
        assert settings.streets.batching.require_batching is True
        assert "motorway" in settings.streets.excluded_types
        assert settings.cache.street_max_age == 300.0

    def test_load_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"streets": {"batching": {"bearing_tolerance": 1.0}}, "search": {"top_n": 3}}))
        settings = load_settings(path)
        assert settings.streets.batching.bearing_tolerance == 1.0
        assert settings.streets.batching.max_bearing_drift == 1.0
        assert settings.search.top_n == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.json")

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"streets": {"batching": {"tolerance": 1}}})

    def test_invalid_ranges_rejected(self):
        with pytest.raises(ValidationError):
            BatchingConfig(bearing_tolerance=-1)
        with pytest.raises(ValidationError):
            StreetsConfig(included_types=["primary"], excluded_types=["primary"])


class TestLogging:
    def test_configure_is_idempotent(self):
        logger = configure_logging("DEBUG", json_format=True)
        configure_logging("WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logging.getLogger("street_alignment.segments").getEffectiveLevel() == logging.WARNING
