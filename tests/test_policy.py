"""Tests for the dosing safety policy and profile defaults."""

import pytest
from pydantic import ValidationError

from doseguard.core.dosing.models import UserDosingProfile
from doseguard.core.dosing.policy import DEFAULT_POLICY, PolicyConfig


class TestPolicyDefaults:
    def test_safety_defaults(self):
        policy = PolicyConfig()
        assert policy.hypo_threshold == 70
        assert policy.hyper_threshold == 180
        assert policy.rounding_increment == 0.5
        assert policy.min_bolus == 0
        assert policy.default_active_insulin_hours == 4
        assert policy.trend_down_correction_multiplier == 0

    def test_gates_enabled_by_default(self):
        policy = PolicyConfig()
        assert policy.block_when_below_hypo is True
        assert policy.require_acknowledgement_above_max is True
        assert policy.require_two_step_confirm_for_recording is True

    def test_validation_bounds(self):
        policy = PolicyConfig()
        assert (policy.min_glucose, policy.max_glucose) == (20, 600)
        assert (policy.min_carbs, policy.max_carbs) == (0, 500)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_POLICY.hypo_threshold = 50


class TestPolicyValidation:
    def test_hypo_must_be_below_hyper(self):
        with pytest.raises(ValidationError):
            PolicyConfig(hypo_threshold=200, hyper_threshold=180)

    def test_glucose_bounds_ordered(self):
        with pytest.raises(ValidationError):
            PolicyConfig(min_glucose=600, max_glucose=20)

    def test_carb_bounds_ordered(self):
        with pytest.raises(ValidationError):
            PolicyConfig(min_carbs=500, max_carbs=0)

    def test_default_targets_ordered(self):
        with pytest.raises(ValidationError):
            PolicyConfig(default_target_low=140, default_target_high=70)

    def test_trend_multiplier_range(self):
        with pytest.raises(ValidationError):
            PolicyConfig(trend_down_correction_multiplier=1.5)
        with pytest.raises(ValidationError):
            PolicyConfig(trend_down_correction_multiplier=-0.1)

    def test_rounding_increment_positive(self):
        with pytest.raises(ValidationError):
            PolicyConfig(rounding_increment=0)

    def test_min_bolus_must_sit_on_rounding_grid(self):
        with pytest.raises(ValidationError):
            PolicyConfig(min_bolus=0.2, rounding_increment=0.5)

    def test_min_bolus_on_grid_accepted(self):
        policy = PolicyConfig(min_bolus=1.0, rounding_increment=0.5)
        assert policy.min_bolus == 1.0


class TestResolveProfile:
    def test_all_missing_uses_documented_defaults(self):
        profile = PolicyConfig().resolve_profile()
        assert profile == UserDosingProfile(
            icr=10,
            isf=30,
            target_low=70,
            target_high=140,
            max_bolus=15,
            active_insulin_hours=4,
        )

    def test_present_fields_kept(self):
        profile = PolicyConfig().resolve_profile(icr=12, max_bolus=8)
        assert profile.icr == 12
        assert profile.max_bolus == 8
        assert profile.isf == 30

    def test_defaults_come_from_policy(self):
        policy = PolicyConfig(default_icr=15, default_active_insulin_hours=5)
        profile = policy.resolve_profile()
        assert profile.icr == 15
        assert profile.active_insulin_hours == 5

    def test_zero_is_not_treated_as_missing(self):
        with pytest.raises(ValidationError):
            PolicyConfig().resolve_profile(icr=0)

    def test_inverted_target_range_rejected(self):
        with pytest.raises(ValidationError):
            PolicyConfig().resolve_profile(target_low=150)

    def test_target_mid(self):
        assert PolicyConfig().default_profile().target_mid == 105
