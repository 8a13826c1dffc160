"""Schemas for the dose calculator endpoints."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from doseguard.core.dosing.enums import (
    GateState,
    GlucoseStatus,
    GlucoseTrend,
    InsulinType,
    RejectionReason,
)

DOSE_DISCLAIMER = (
    "This calculation is for reference only. Always consult your "
    "healthcare provider about your insulin doses."
)


class DoseCalculationRequest(BaseModel):
    """POST body for /api/users/{user_id}/dose/calculate.

    Values are passed through untouched: the safety gate is the only
    validator, so missing, boolean, non-numeric and out-of-range input
    all come back as the same field errors.
    """

    glucose: Any = Field(
        default=None,
        description="Current blood glucose (mg/dL).",
        examples=[145],
    )
    carbs: Any = Field(
        default=None,
        description="Carbohydrate about to be eaten (g).",
        examples=[45],
    )
    trend: Any = Field(
        default=None,
        description="Direction the glucose reading is moving; defaults to stable.",
        examples=[t.value for t in GlucoseTrend],
    )


class DoseRecordRequest(DoseCalculationRequest):
    """POST body for /api/users/{user_id}/dose/record."""

    acknowledged: bool = Field(
        default=False,
        description="User acknowledged the maximum-dose warning.",
    )
    confirmed: bool = Field(
        default=False,
        description="User passed the explicit confirmation step.",
    )
    expected_final_dose: float | None = Field(
        default=None,
        ge=0,
        description="Dose shown to the user; recording is refused if it changed.",
    )


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """422 body for input outside policy bounds."""

    state: GateState = GateState.idle
    detail: list[FieldErrorResponse]


class DoseBreakdownResponse(BaseModel):
    """Full breakdown of a calculated dose."""

    model_config = {"from_attributes": True}

    meal_bolus: float
    correction_bolus: float
    iob: float
    raw_suggested_dose: float
    final_dose: float
    is_above_max: bool


class HypoAdvisoryResponse(BaseModel):
    """Immediate-action guidance shown instead of any dose."""

    model_config = {"from_attributes": True}

    glucose: float
    message: str
    steps: list[str]
    fast_carbs_grams_min: int
    fast_carbs_grams_max: int
    recheck_minutes: int
    insulin_allowed: bool


class DoseCalculationResponse(BaseModel):
    """Response from /api/users/{user_id}/dose/calculate."""

    state: GateState
    glucose_status: GlucoseStatus | None = None
    breakdown: DoseBreakdownResponse | None = None
    pre_cap_dose: float | None = Field(
        default=None,
        description="Calculated dose before the maximum-dose cap.",
    )
    advisory: HypoAdvisoryResponse | None = None
    warnings: list[str] = Field(default_factory=list)
    requires_acknowledgement: bool = False
    requires_confirmation: bool = False
    disclaimer: str = DOSE_DISCLAIMER


class RecordedDoseResponse(BaseModel):
    """201 body: the insulin entry that was appended."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    timestamp: datetime
    units: float
    insulin_type: InsulinType
    reason: str | None = None
    note: str | None = None


class DoseRejectionResponse(BaseModel):
    """409 body: why the dose was not recorded."""

    state: GateState = GateState.rejected
    gate_state: GateState = Field(
        description="State of the fresh calculation the rejection applies to.",
    )
    reason: RejectionReason
    outstanding: list[RejectionReason]
    message: str
    breakdown: DoseBreakdownResponse | None = None
    advisory: HypoAdvisoryResponse | None = None
