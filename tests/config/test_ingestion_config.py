"""Tests for the ingestion YAML config: defaults, validation and env override."""

from pathlib import Path

import pytest
import yaml

from ledger_config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    clear_config_cache,
    get_active_config,
)
from ledger_config.loader import load_yaml_file, parse_alias_table, parse_config


def _write_config(tmp_path: Path, **overrides) -> Path:
    data = load_yaml_file(DEFAULT_CONFIG_PATH)
    data.update(overrides)
    path = tmp_path / "ingestion.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestBundledDefaults:
    def test_limits(self, config):
        assert config.batch_size == 500
        assert config.preview_size == 5
        assert config.history_limit == 10
        assert config.lock_stale_after_seconds is None

    def test_import_types_in_order(self, config):
        assert config.import_type_names == ("customers", "products", "invoices")
        assert config.import_type("suppliers") is None

    def test_alias_order_preserved(self, config):
        phone = config.import_type("customers").aliases.aliases("phone")
        assert phone[0] == "Mobile No"
        assert "Phone Number" in phone

    def test_tally_voucher_types(self, config):
        assert config.tally.sales_voucher_types == ("Sales",)
        assert config.tally.receipt_voucher_types == ("Receipt",)
        assert "PARTYMOBILE" in config.tally.voucher_fields.aliases("phone")

    def test_sources_and_extensions(self, config):
        assert (config.source_name, config.tally_source_name) == ("vyapar", "tally")
        assert config.allowed_extensions == (".xml", ".xls", ".xlsx")

    def test_checksum_is_stable(self, config):
        again = parse_config(load_yaml_file(DEFAULT_CONFIG_PATH))
        assert again.checksum == config.checksum
        assert len(config.checksum) == 64


class TestValidation:
    def test_non_positive_batch_size_rejected(self):
        data = load_yaml_file(DEFAULT_CONFIG_PATH)
        data["limits"]["batch_size"] = 0
        with pytest.raises(ValueError, match="batch_size"):
            parse_config(data)

    def test_alias_list_must_be_strings(self):
        with pytest.raises(ValueError, match="'phone'"):
            parse_alias_table({"phone": "Mobile"})

    def test_alias_table_must_be_mapping(self):
        with pytest.raises(ValueError):
            parse_alias_table(["Mobile"])

    def test_missing_tally_section(self):
        data = load_yaml_file(DEFAULT_CONFIG_PATH)
        del data["tally"]
        with pytest.raises(KeyError):
            parse_config(data)

    def test_extensions_lowercased(self):
        data = load_yaml_file(DEFAULT_CONFIG_PATH)
        data["allowed_extensions"] = [".XLSX"]
        assert parse_config(data).allowed_extensions == (".xlsx",)


class TestActiveConfig:
    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        path = _write_config(tmp_path, source_name="vyapar-test")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        clear_config_cache()
        try:
            assert get_active_config().source_name == "vyapar-test"
        finally:
            clear_config_cache()

    def test_explicit_path_beats_env_var(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(_write_config(tmp_path, source_name="other")))
        clear_config_cache()
        try:
            assert get_active_config(DEFAULT_CONFIG_PATH).source_name == "vyapar"
        finally:
            clear_config_cache()

    def test_cached_per_path(self):
        clear_config_cache()
        try:
            assert get_active_config(DEFAULT_CONFIG_PATH) is get_active_config(DEFAULT_CONFIG_PATH)
        finally:
            clear_config_cache()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")
