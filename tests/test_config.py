"""Tests for settings parsing from the environment and .env."""

import pytest
from pydantic import ValidationError

import scanweave.config as config
from scanweave.config import Settings, load_config


class TestRadioModeParsing:
    def test_default_is_none(self, monkeypatch):
        monkeypatch.delenv("SCANWEAVE_RADIO_MODE", raising=False)
        monkeypatch.setattr(config, "_ENV_FILE", config.Path("/nonexistent/.env"))
        assert Settings().radio_mode == "none"

    def test_case_and_whitespace(self):
        assert Settings(radio_mode=" Mock ").radio_mode == "mock"

    def test_empty_means_none(self):
        assert Settings(radio_mode="").radio_mode == "none"

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            Settings(radio_mode="ruckus")


class TestScheduling:
    def test_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(scan_interval_ms=0)

    @pytest.mark.parametrize("value", ["", None, 0, "0"])
    def test_timeout_disabled(self, value):
        assert Settings(scan_timeout_ms=value).scan_timeout_ms is None

    def test_timeout_from_string(self):
        assert Settings(scan_timeout_ms="15000").scan_timeout_ms == 15000

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            Settings(scan_timeout_ms=-1)

    def test_failure_rate_range(self):
        assert Settings(mock_failure_rate=0.25).mock_failure_rate == 0.25
        with pytest.raises(ValidationError):
            Settings(mock_failure_rate=1.5)


class TestEnvironment:
    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("SCANWEAVE_RADIO_MODE", "iw")
        monkeypatch.setenv("SCANWEAVE_WIFI_INTERFACE", "wlan1")
        monkeypatch.setenv("SCANWEAVE_AUTOSTART", "true")
        s = Settings()
        assert s.radio_mode == "iw"
        assert s.wifi_interface == "wlan1"
        assert s.autostart is True


    def test_load_config_reads_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text('# local\nSCANWEAVE_RADIO_MODE=mock\nSCANWEAVE_SCAN_INTERVAL_MS=750\n')
        monkeypatch.setattr(config, "_ENV_FILE", env_file)
        monkeypatch.delenv("SCANWEAVE_RADIO_MODE", raising=False)
        monkeypatch.delenv("SCANWEAVE_SCAN_INTERVAL_MS", raising=False)

        s = load_config()
        assert s.radio_mode == "mock"
        assert s.scan_interval_ms == 750

    def test_environment_overrides_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("SCANWEAVE_RADIO_MODE=mock\n")
        monkeypatch.setattr(config, "_ENV_FILE", env_file)
        monkeypatch.setenv("SCANWEAVE_RADIO_MODE", "none")

        assert load_config().radio_mode == "none"
