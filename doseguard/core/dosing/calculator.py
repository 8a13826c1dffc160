"""Bolus dose calculator.

Combines carbohydrate, glucose, trend, personal ratios and insulin on
board into a suggested bolus. Inputs must already be validated (see
doseguard.core.dosing.gate.validate_dose_input); this module does not
validate and does not apply the maximum-dose cap, so the pre-cap value
stays available for display.
"""

from doseguard.core.dosing.enums import GlucoseTrend
from doseguard.core.dosing.models import (
    DoseCalculationResult,
    DoseInput,
    UserDosingProfile,
)
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.rounding import round_to_increment


class DoseCalculator:
    """Stateless two-term (meal + correction) bolus calculator."""

    def calculate(
        self,
        dose_input: DoseInput,
        profile: UserDosingProfile,
        iob: float,
        policy: PolicyConfig,
    ) -> DoseCalculationResult:
        """Calculate the suggested bolus.

        Args:
            dose_input: Validated glucose, carbs and trend.
            profile: Fully resolved dosing profile.
            iob: Insulin on board snapshot in units.
            policy: Safety policy (rounding, floor, trend multiplier).

        Returns:
            DoseCalculationResult with ``final_dose == raw_suggested_dose``.
        """
        meal_bolus = self.meal_bolus(dose_input.carbs, profile)
        correction_bolus = self.correction_bolus(
            dose_input.glucose, dose_input.trend, profile, policy
        )

        raw = max(policy.min_bolus, meal_bolus + correction_bolus - iob)
        raw = round_to_increment(raw, policy.rounding_increment)

        return DoseCalculationResult(
            meal_bolus=meal_bolus,
            correction_bolus=correction_bolus,
            iob=iob,
            raw_suggested_dose=raw,
            final_dose=raw,
            is_above_max=False,
        )

    @staticmethod
    def meal_bolus(carbs: float, profile: UserDosingProfile) -> float:
        return carbs / profile.icr

    @staticmethod
    def correction_bolus(
        glucose: float,
        trend: GlucoseTrend,
        profile: UserDosingProfile,
        policy: PolicyConfig,
    ) -> float:
        """Correction towards the middle of the target range, never negative.

        A falling trend scales the correction by the policy multiplier
        (0 by default) so insulin is not stacked on an existing drop.
        """
        correction = max(0.0, (glucose - profile.target_mid) / profile.isf)
        if trend == GlucoseTrend.falling:
            correction *= policy.trend_down_correction_multiplier
        return correction
