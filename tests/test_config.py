# tests/test_config.py

"""
Tests for configuration loading.
"""

import logging

import pytest

from bank_supplier_recon.config import (
    ReconConfig,
    _deep_merge,
    generate_default_config,
    load_config,
    override_matching,
)
from bank_supplier_recon.utils.exceptions import ConfigurationError
from bank_supplier_recon.utils.logging_config import get_logger, setup_logging


class TestLoadConfig:
    """YAML loading over defaults."""

    def test_defaults(self):
        config = load_config(None)

        assert isinstance(config, ReconConfig)
        assert config.matching.amount_tolerance == 0.01
        assert config.matching.use_accounting_date is True
        assert config.matching.max_date_distance_days is None
        assert config.extraction.dedup_description_length == 30
        assert "saldo" in config.extraction.deny_tokens
        assert config.config_file_path is None

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config.config_file_path is None

    def test_partial_override(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("matching:\n  max_date_distance_days: 45\n", encoding="utf-8")

        config = load_config(path)

        assert config.matching.max_date_distance_days == 45
        assert config.matching.amount_tolerance == 0.01
        assert config.config_file_path == str(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("matching: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("matching:\n  amount_tolerance: 0\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_generated_file_round_trips(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        generate_default_config(path)

        config = load_config(path)

        assert path.exists()
        assert config.matching == ReconConfig().matching
        assert config.extraction == ReconConfig().extraction


def test_deep_merge_keeps_unrelated_keys():
    base = {"a": {"x": 1, "y": 2}, "b": 3}
    merged = _deep_merge(base, {"a": {"y": 5}})

    assert merged == {"a": {"x": 1, "y": 5}, "b": 3}
    assert base["a"]["y"] == 2


class TestOverrideMatching:
    """Command-line overrides of matching options."""

    def test_overrides_applied(self):
        options = override_matching(ReconConfig().matching, {"max_date_distance_days": 3})

        assert options.max_date_distance_days == 3
        assert options.amount_tolerance == 0.01

    @pytest.mark.parametrize("tolerance", [0, -0.5])
    def test_non_positive_tolerance_rejected(self, tolerance):
        with pytest.raises(ConfigurationError):
            override_matching(ReconConfig().matching, {"amount_tolerance": tolerance})

    def test_negative_distance_rejected(self):
        with pytest.raises(ConfigurationError):
            override_matching(ReconConfig().matching, {"max_date_distance_days": -1})


class TestLogging:
    """Package logger setup."""

    @pytest.fixture(autouse=True)
    def reset_handlers(self):
        yield
        logging.getLogger("bank_supplier_recon").handlers = []

    def test_level_name_string(self):
        logger = setup_logging("debug")
        assert logger.name == "bank_supplier_recon"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_unknown_level_name_falls_back_to_info(self):
        assert setup_logging("chatty").level == logging.INFO

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging(logging.INFO)
        logger = setup_logging(logging.INFO)
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "recon.log"
        logger = setup_logging(logging.INFO, log_file)
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
        for handler in logger.handlers:
            handler.close()

    def test_pdf_library_loggers_quieted(self):
        setup_logging(logging.DEBUG)
        assert logging.getLogger("pdfminer").level == logging.WARNING

    def test_get_logger_nests_under_package(self):
        assert get_logger("matching").name == "bank_supplier_recon.matching"
        assert get_logger("bank_supplier_recon.service").name == "bank_supplier_recon.service"
