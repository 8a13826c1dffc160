"""Dosing safety policy.

PolicyConfig is the single source of truth for every safety-relevant
number used by the calculator and gate, including the defaults applied
to incomplete dosing profiles. It is immutable and built once per
process (see doseguard.config.get_policy).
"""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from doseguard.core.dosing import constants
from doseguard.core.dosing.models import UserDosingProfile
from doseguard.core.dosing.rounding import is_multiple_of


class PolicyConfig(BaseModel):
    """Immutable safety constants, thresholds and gating flags."""

    model_config = ConfigDict(frozen=True)

    hypo_threshold: float = Field(default=constants.HYPO_THRESHOLD_MGDL, gt=0)
    hyper_threshold: float = Field(default=constants.HYPER_THRESHOLD_MGDL, gt=0)

    rounding_increment: float = Field(
        default=constants.DOSE_ROUNDING_INCREMENT_UNITS, gt=0
    )
    iob_rounding_increment: float = Field(
        default=constants.IOB_ROUNDING_INCREMENT_UNITS, gt=0
    )
    min_bolus: float = Field(default=constants.MIN_BOLUS_UNITS, ge=0)
    default_active_insulin_hours: float = Field(
        default=constants.DEFAULT_ACTIVE_INSULIN_HOURS, gt=0
    )
    trend_down_correction_multiplier: float = Field(
        default=constants.TREND_DOWN_CORRECTION_MULTIPLIER,
        ge=0,
        le=1,
        description="Applied to the correction term when glucose is falling.",
    )

    block_when_below_hypo: bool = True
    require_acknowledgement_above_max: bool = True
    require_two_step_confirm_for_recording: bool = True

    min_glucose: float = constants.MIN_GLUCOSE_MGDL
    max_glucose: float = constants.MAX_GLUCOSE_MGDL
    min_carbs: float = Field(default=constants.MIN_CARBS_GRAMS, ge=0)
    max_carbs: float = constants.MAX_CARBS_GRAMS

    default_icr: float = Field(default=constants.DEFAULT_ICR_GRAMS_PER_UNIT, gt=0)
    default_isf: float = Field(default=constants.DEFAULT_ISF_MGDL_PER_UNIT, gt=0)
    default_target_low: float = Field(default=constants.DEFAULT_TARGET_LOW_MGDL, gt=0)
    default_target_high: float = Field(
        default=constants.DEFAULT_TARGET_HIGH_MGDL, gt=0
    )
    default_max_bolus: float = Field(default=constants.DEFAULT_MAX_BOLUS_UNITS, gt=0)

    @model_validator(mode="after")
    def check_ordering(self) -> Self:
        """Validate that paired bounds are ordered and the floor is reachable."""
        if self.hypo_threshold >= self.hyper_threshold:
            msg = "hypo_threshold must be less than hyper_threshold"
            raise ValueError(msg)
        if self.min_glucose >= self.max_glucose:
            msg = "min_glucose must be less than max_glucose"
            raise ValueError(msg)
        if self.min_carbs >= self.max_carbs:
            msg = "min_carbs must be less than max_carbs"
            raise ValueError(msg)
        if self.default_target_low >= self.default_target_high:
            msg = "default_target_low must be less than default_target_high"
            raise ValueError(msg)
        # Rounding a value >= min_bolus can only stay >= min_bolus when the
        # floor itself sits on the rounding grid.
        if not is_multiple_of(self.min_bolus, self.rounding_increment):
            msg = "min_bolus must be a multiple of rounding_increment"
            raise ValueError(msg)
        return self

    def resolve_profile(
        self,
        *,
        icr: float | None = None,
        isf: float | None = None,
        target_low: float | None = None,
        target_high: float | None = None,
        max_bolus: float | None = None,
        active_insulin_hours: float | None = None,
    ) -> UserDosingProfile:
        """Build a complete profile, filling each missing field from policy.

        Only ``None`` counts as missing; zero or negative values are passed
        through and rejected by UserDosingProfile validation.
        """
        return UserDosingProfile(
            icr=self.default_icr if icr is None else icr,
            isf=self.default_isf if isf is None else isf,
            target_low=self.default_target_low if target_low is None else target_low,
            target_high=(
                self.default_target_high if target_high is None else target_high
            ),
            max_bolus=self.default_max_bolus if max_bolus is None else max_bolus,
            active_insulin_hours=(
                self.default_active_insulin_hours
                if active_insulin_hours is None
                else active_insulin_hours
            ),
        )

    def default_profile(self) -> UserDosingProfile:
        return self.resolve_profile()


DEFAULT_POLICY = PolicyConfig()
