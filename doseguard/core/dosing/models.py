"""Dosing Pydantic models.

Pure data models for the dose calculator and safety gate. No database
dependencies, no SQLAlchemy. All models are frozen: a calculation
result is never mutated after creation, only replaced.

Glucose values are in mg/dL, doses in insulin units, carbohydrate in
grams.
"""

import uuid
from typing import Self

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator

from doseguard.core.dosing.enums import (
    GateState,
    GlucoseStatus,
    GlucoseTrend,
    InsulinType,
    RejectionReason,
)


class UserDosingProfile(BaseModel):
    """Personal dosing ratios, fully resolved (no missing fields)."""

    model_config = ConfigDict(frozen=True)

    icr: float = Field(gt=0, description="Grams of carbohydrate covered by one unit.")
    isf: float = Field(gt=0, description="mg/dL drop produced by one unit.")
    target_low: float = Field(gt=0)
    target_high: float = Field(gt=0)
    max_bolus: float = Field(gt=0, description="Personal single-dose ceiling (units).")
    active_insulin_hours: float = Field(gt=0)

    @model_validator(mode="after")
    def check_target_range(self) -> Self:
        if self.target_low >= self.target_high:
            msg = "target_low must be less than target_high"
            raise ValueError(msg)
        return self

    @property
    def target_mid(self) -> float:
        return (self.target_low + self.target_high) / 2


class InsulinEntry(BaseModel):
    """A single insulin administration from the append-only history."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID | None = None
    timestamp: AwareDatetime
    units: float = Field(gt=0)
    insulin_type: InsulinType
    reason: str | None = None
    note: str | None = None


class DoseInput(BaseModel):
    """Validated calculator input."""

    model_config = ConfigDict(frozen=True)

    glucose: float
    carbs: float
    trend: GlucoseTrend = GlucoseTrend.stable


class FieldError(BaseModel):
    """A validation failure tied to one input field."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str = Field(min_length=1)


class DoseCalculationResult(BaseModel):
    """Breakdown of a suggested bolus.

    ``raw_suggested_dose`` is the rounded pre-cap value. ``final_dose`` is
    what may be recorded; it differs only when the maximum-dose cap was
    applied.
    """

    model_config = ConfigDict(frozen=True)

    meal_bolus: float = Field(ge=0)
    correction_bolus: float = Field(ge=0)
    iob: float = Field(ge=0)
    raw_suggested_dose: float = Field(ge=0)
    final_dose: float = Field(ge=0)
    is_above_max: bool = False

    @model_validator(mode="after")
    def check_consistency(self) -> Self:
        """Enforce that the capped and uncapped doses agree with is_above_max."""
        if self.is_above_max and self.final_dose >= self.raw_suggested_dose:
            msg = "final_dose must be below raw_suggested_dose when is_above_max"
            raise ValueError(msg)
        if not self.is_above_max and self.final_dose != self.raw_suggested_dose:
            msg = "final_dose must equal raw_suggested_dose unless is_above_max"
            raise ValueError(msg)
        return self


class HypoAdvisory(BaseModel):
    """Immediate-action guidance returned instead of a dose."""

    model_config = ConfigDict(frozen=True)

    glucose: float
    message: str
    steps: list[str] = Field(min_length=1)
    fast_carbs_grams_min: int
    fast_carbs_grams_max: int
    recheck_minutes: int
    insulin_allowed: bool = False

    @model_validator(mode="after")
    def check_insulin_disallowed(self) -> Self:
        if self.insulin_allowed:
            msg = "insulin is never allowed while hypoglycemic"
            raise ValueError(msg)
        return self


class GateOutcome(BaseModel):
    """Snapshot of the safety gate after an evaluation or transition."""

    model_config = ConfigDict(frozen=True)

    state: GateState
    glucose_status: GlucoseStatus | None = None
    result: DoseCalculationResult | None = None
    advisory: HypoAdvisory | None = None
    validation_errors: list[FieldError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self) -> Self:
        """Enforce that each state carries exactly the data it implies."""
        if self.state == GateState.idle:
            if not self.validation_errors:
                msg = "idle outcome must carry validation errors"
                raise ValueError(msg)
            if self.result is not None or self.advisory is not None:
                msg = "idle outcome must not carry a result or advisory"
                raise ValueError(msg)
        elif self.state == GateState.hypo_blocked:
            if self.advisory is None:
                msg = "hypo_blocked outcome must carry an advisory"
                raise ValueError(msg)
            if self.result is not None:
                msg = "hypo_blocked outcome must not carry a dose"
                raise ValueError(msg)
        elif self.state in (
            GateState.calculated,
            GateState.above_max_pending_ack,
            GateState.finalized,
        ):
            if self.result is None:
                msg = f"{self.state} outcome must carry a result"
                raise ValueError(msg)
            if self.advisory is not None:
                msg = f"{self.state} outcome must not carry an advisory"
                raise ValueError(msg)
            if (
                self.state == GateState.above_max_pending_ack
                and not self.result.is_above_max
            ):
                msg = "above_max_pending_ack requires an above-max result"
                raise ValueError(msg)
        else:
            msg = f"{self.state} is not a gate outcome state"
            raise ValueError(msg)
        return self

    @property
    def pre_cap_dose(self) -> float | None:
        """The calculated dose before the maximum-dose cap, if any."""
        return self.result.raw_suggested_dose if self.result is not None else None

    @property
    def is_recordable(self) -> bool:
        return self.state == GateState.finalized


class Rejected(BaseModel):
    """A refused recording attempt.

    ``outstanding`` lists every unmet requirement; ``reason`` is the first.
    """

    model_config = ConfigDict(frozen=True)

    reason: RejectionReason
    outstanding: list[RejectionReason] = Field(min_length=1)
    message: str = Field(min_length=1)

    @model_validator(mode="after")
    def check_reason_outstanding(self) -> Self:
        if self.outstanding[0] != self.reason:
            msg = "reason must be the first outstanding requirement"
            raise ValueError(msg)
        return self
