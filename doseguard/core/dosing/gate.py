"""Dosing safety gate.

Drives a calculation through the gate states:

    idle -> validating -> hypo_blocked
                       -> calculated -> above_max_pending_ack -> finalized
                                     -> finalized

1. Validation: glucose and carbs are range-checked against policy.
   Failure returns an ``idle`` outcome carrying field errors.
2. Hypoglycemia check: evaluated before any IoB or dose math. A blocked
   outcome carries an advisory and never a dose; nothing can override it.
3. Calculation and maximum-dose cap: the capped dose needs explicit
   acknowledgment when policy requires it.

IMPORTANT: The gate produces a *suggested* dose for a human to review.
It never triggers delivery.
"""

import math
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal
from numbers import Real
from typing import Any

from doseguard.core.dosing.calculator import DoseCalculator
from doseguard.core.dosing.constants import (
    HYPO_FAST_CARBS_GRAMS_MAX,
    HYPO_FAST_CARBS_GRAMS_MIN,
    HYPO_RECHECK_MINUTES,
)
from doseguard.core.dosing.enums import GateState, GlucoseStatus, GlucoseTrend
from doseguard.core.dosing.exceptions import DoseInputError, GateTransitionError
from doseguard.core.dosing.iob import compute_iob
from doseguard.core.dosing.models import (
    DoseCalculationResult,
    DoseInput,
    FieldError,
    GateOutcome,
    HypoAdvisory,
    InsulinEntry,
    UserDosingProfile,
)
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.logging_config import get_logger

logger = get_logger(__name__)


def _parse_bounded(
    field: str, value: Any, low: float, high: float
) -> tuple[float | None, FieldError | None]:
    """Coerce ``value`` to a finite float within [low, high]."""
    if isinstance(value, bool) or value is None:
        return None, FieldError(field=field, message="Enter a valid number")
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None, FieldError(field=field, message="Enter a valid number")
    elif isinstance(value, Real | Decimal):
        try:
            number = float(value)
        except OverflowError:
            # Integers too large for a float are out of range, not malformed
            if value > 0:
                message = f"Maximum value: {high:g}"
            else:
                message = f"Minimum value: {low:g}"
            return None, FieldError(field=field, message=message)
        except ValueError:
            return None, FieldError(field=field, message="Enter a valid number")
    else:
        return None, FieldError(field=field, message="Enter a valid number")

    if not math.isfinite(number):
        return None, FieldError(field=field, message="Enter a valid number")
    if number < low:
        return None, FieldError(field=field, message=f"Minimum value: {low:g}")
    if number > high:
        return None, FieldError(field=field, message=f"Maximum value: {high:g}")
    return number, None


def validate_dose_input(
    glucose: Any,
    carbs: Any,
    trend: Any,
    policy: PolicyConfig,
) -> DoseInput:
    """Validate raw calculator input against policy bounds.

    Every field is checked (no short-circuit) so the caller can report
    all offending fields at once. A missing trend means ``stable``.

    Raises:
        DoseInputError: With one FieldError per invalid field.
    """
    errors: list[FieldError] = []

    glucose_value, error = _parse_bounded(
        "glucose", glucose, policy.min_glucose, policy.max_glucose
    )
    if error is not None:
        errors.append(error)

    carbs_value, error = _parse_bounded(
        "carbs", carbs, policy.min_carbs, policy.max_carbs
    )
    if error is not None:
        errors.append(error)

    trend_value = GlucoseTrend.stable
    if trend is not None:
        try:
            trend_value = GlucoseTrend(trend)
        except ValueError:
            allowed = ", ".join(t.value for t in GlucoseTrend)
            errors.append(
                FieldError(field="trend", message=f"Trend must be one of: {allowed}")
            )

    if errors:
        raise DoseInputError(errors)

    return DoseInput(glucose=glucose_value, carbs=carbs_value, trend=trend_value)


def classify_glucose(value: float, policy: PolicyConfig) -> GlucoseStatus:
    """Classify a glucose value as low, normal or high."""
    if value < policy.hypo_threshold:
        return GlucoseStatus.low
    if value > policy.hyper_threshold:
        return GlucoseStatus.high
    return GlucoseStatus.normal


def build_hypo_advisory(glucose: float) -> HypoAdvisory:
    """Immediate-action guidance for a hypoglycemic reading."""
    return HypoAdvisory(
        glucose=glucose,
        message=(
            f"Your blood sugar is low at {glucose:g} mg/dL. Do NOT take insulin."
        ),
        steps=[
            f"Take {HYPO_FAST_CARBS_GRAMS_MIN}-{HYPO_FAST_CARBS_GRAMS_MAX}g "
            "fast-acting carbohydrate (juice, sugar)",
            f"Wait {HYPO_RECHECK_MINUTES} minutes",
            "Check your blood sugar again",
            "Repeat if it is still low",
        ],
        fast_carbs_grams_min=HYPO_FAST_CARBS_GRAMS_MIN,
        fast_carbs_grams_max=HYPO_FAST_CARBS_GRAMS_MAX,
        recheck_minutes=HYPO_RECHECK_MINUTES,
    )


def apply_max_cap(
    result: DoseCalculationResult, profile: UserDosingProfile
) -> DoseCalculationResult:
    """Cap the final dose at the profile's maximum bolus.

    Returns a new result; the input is never modified.
    """
    if result.raw_suggested_dose <= profile.max_bolus:
        return result
    return result.model_copy(
        update={"final_dose": profile.max_bolus, "is_above_max": True}
    )


class SafetyGate:
    """Evaluates calculator output against the safety policy.

    Stateless apart from its policy and calculator; safe to share. Each
    evaluation works only on the snapshot it is given.
    """

    def __init__(
        self,
        policy: PolicyConfig,
        calculator: DoseCalculator | None = None,
    ) -> None:
        self.policy = policy
        self.calculator = calculator or DoseCalculator()

    def evaluate(
        self,
        *,
        glucose: Any,
        carbs: Any,
        trend: Any,
        profile: UserDosingProfile,
        entries: Sequence[InsulinEntry],
        now: datetime | None = None,
    ) -> GateOutcome:
        """Run validation, the hypoglycemia block, calculation and capping.

        Args:
            glucose: Raw glucose input (mg/dL).
            carbs: Raw carbohydrate input (grams).
            trend: Raw trend input; ``None`` means stable.
            profile: Fully resolved dosing profile.
            entries: Immutable snapshot of insulin history.
            now: Reference time; defaults to the current server time.
                Must be timezone-aware.

        Returns:
            GateOutcome in state idle, hypo_blocked,
            above_max_pending_ack or finalized.

        Raises:
            ValueError: If ``now`` is naive.
        """
        now = now or datetime.now(UTC)
        if now.tzinfo is None:
            msg = "now must be timezone-aware"
            raise ValueError(msg)
        self._log_transition(GateState.idle, GateState.validating)

        try:
            dose_input = validate_dose_input(glucose, carbs, trend, self.policy)
        except DoseInputError as e:
            self._log_transition(GateState.validating, GateState.idle)
            logger.info(
                "Dose input rejected",
                fields=[error.field for error in e.errors],
            )
            return GateOutcome(state=GateState.idle, validation_errors=e.errors)

        status = classify_glucose(dose_input.glucose, self.policy)

        is_hypo = dose_input.glucose < self.policy.hypo_threshold
        if is_hypo and self.policy.block_when_below_hypo:
            self._log_transition(GateState.validating, GateState.hypo_blocked)
            logger.warning(
                "Dose calculation blocked by hypoglycemia",
                glucose_mgdl=dose_input.glucose,
                hypo_threshold_mgdl=self.policy.hypo_threshold,
            )
            return GateOutcome(
                state=GateState.hypo_blocked,
                glucose_status=status,
                advisory=build_hypo_advisory(dose_input.glucose),
            )

        iob = compute_iob(now, entries, profile.active_insulin_hours, self.policy)
        calculated = self.calculator.calculate(dose_input, profile, iob, self.policy)
        self._log_transition(GateState.validating, GateState.calculated)

        warnings = self._trend_warnings(dose_input, profile, calculated)
        result = apply_max_cap(calculated, profile)

        if result.is_above_max:
            warnings.append(
                f"Calculated dose ({result.raw_suggested_dose:.1f}u) exceeds your "
                f"max limit ({profile.max_bolus:g}u). Limited to "
                f"{profile.max_bolus:g}u for safety."
            )
            logger.warning(
                "Dose capped at maximum bolus",
                raw_suggested_dose=result.raw_suggested_dose,
                max_bolus=profile.max_bolus,
            )

        if result.is_above_max and self.policy.require_acknowledgement_above_max:
            next_state = GateState.above_max_pending_ack
        else:
            next_state = GateState.finalized
        self._log_transition(GateState.calculated, next_state)

        return GateOutcome(
            state=next_state,
            glucose_status=status,
            result=result,
            warnings=warnings,
        )

    def acknowledge(self, outcome: GateOutcome) -> GateOutcome:
        """Record the user's "I understand and confirm" for a capped dose.

        Moves above_max_pending_ack to finalized. Finalized outcomes are
        returned unchanged.

        Raises:
            GateTransitionError: For hypo_blocked or idle outcomes, which
                carry no dose to acknowledge.
        """
        if outcome.state == GateState.above_max_pending_ack:
            self._log_transition(outcome.state, GateState.finalized)
            return outcome.model_copy(update={"state": GateState.finalized})
        if outcome.state in (GateState.finalized, GateState.calculated):
            return outcome
        msg = f"Cannot acknowledge a dose in state {outcome.state}"
        raise GateTransitionError(msg)

    def _trend_warnings(
        self,
        dose_input: DoseInput,
        profile: UserDosingProfile,
        result: DoseCalculationResult,
    ) -> list[str]:
        if dose_input.trend != GlucoseTrend.falling:
            return []
        unadjusted = self.calculator.correction_bolus(
            dose_input.glucose, GlucoseTrend.stable, profile, self.policy
        )
        if unadjusted <= result.correction_bolus:
            return []
        if result.correction_bolus == 0:
            return ["Glucose is falling: correction dose removed."]
        return ["Glucose is falling: correction dose reduced."]

    @staticmethod
    def _log_transition(from_state: GateState, to_state: GateState) -> None:
        logger.debug(
            "Dose gate transition",
            from_state=from_state.value,
            to_state=to_state.value,
        )
