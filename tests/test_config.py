"""Tests for application settings and policy loading."""

import pytest
from pydantic import ValidationError

from doseguard.config import Settings, get_policy, settings
from doseguard.core.dosing.policy import PolicyConfig


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DOSING_POLICY__HYPO_THRESHOLD", raising=False)
        loaded = Settings(_env_file=None)
        assert loaded.service_name == "doseguard-api"
        assert loaded.dosing_policy == PolicyConfig()

    def test_nested_policy_override(self, monkeypatch):
        monkeypatch.setenv("DOSING_POLICY__HYPO_THRESHOLD", "72")
        monkeypatch.setenv(
            "DOSING_POLICY__REQUIRE_TWO_STEP_CONFIRM_FOR_RECORDING", "false"
        )

        loaded = Settings(_env_file=None)

        assert loaded.dosing_policy.hypo_threshold == 72
        assert loaded.dosing_policy.require_two_step_confirm_for_recording is False
        assert loaded.dosing_policy.hyper_threshold == 180

    def test_invalid_policy_rejected_at_startup(self, monkeypatch):
        monkeypatch.setenv("DOSING_POLICY__HYPO_THRESHOLD", "200")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_off_grid_min_bolus_rejected(self, monkeypatch):
        monkeypatch.setenv("DOSING_POLICY__MIN_BOLUS", "0.3")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_testing_flag_set_for_suite(self):
        assert settings.testing is True


class TestGetPolicy:
    def test_returns_loaded_policy(self):
        assert get_policy() is settings.dosing_policy

    def test_policy_is_immutable(self):
        with pytest.raises(ValidationError):
            get_policy().hypo_threshold = 40
