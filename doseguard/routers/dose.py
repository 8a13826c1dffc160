"""Dose calculator router.

Calculation is side-effect free. Recording re-runs the calculation and
only appends an insulin entry after every gate requirement is met.
Neither endpoint delivers insulin.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from doseguard.config import get_policy
from doseguard.core.dosing.enums import GateState
from doseguard.core.dosing.exceptions import ProfileNotFoundError
from doseguard.core.dosing.models import GateOutcome, Rejected
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.stores import EntryStore, ProfileStore
from doseguard.database import get_db
from doseguard.schemas.dose import (
    DoseBreakdownResponse,
    DoseCalculationRequest,
    DoseCalculationResponse,
    DoseRecordRequest,
    DoseRejectionResponse,
    FieldErrorResponse,
    HypoAdvisoryResponse,
    RecordedDoseResponse,
    ValidationErrorResponse,
)
from doseguard.services.dose_calculation import calculate_dose, record_dose
from doseguard.services.entry_store import SqlEntryStore
from doseguard.services.profile_store import SqlProfileStore

router = APIRouter(prefix="/api/users/{user_id}/dose", tags=["dose"])


def get_entry_store(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> EntryStore:
    return SqlEntryStore(db, user_id)


def get_profile_store(
    db: AsyncSession = Depends(get_db),
    policy: PolicyConfig = Depends(get_policy),
) -> ProfileStore:
    return SqlProfileStore(db, policy)


def _breakdown(outcome: GateOutcome) -> DoseBreakdownResponse | None:
    if outcome.result is None:
        return None
    return DoseBreakdownResponse.model_validate(outcome.result)


def _advisory(outcome: GateOutcome) -> HypoAdvisoryResponse | None:
    if outcome.advisory is None:
        return None
    return HypoAdvisoryResponse.model_validate(outcome.advisory)


def _validation_error(outcome: GateOutcome) -> JSONResponse:
    body = ValidationErrorResponse(
        detail=[
            FieldErrorResponse(field=error.field, message=error.message)
            for error in outcome.validation_errors
        ]
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(mode="json"),
    )


def _profile_not_found(e: ProfileNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post(
    "/calculate",
    response_model=DoseCalculationResponse,
    responses={
        200: {"description": "Calculated, capped, or hypoglycemia-blocked outcome"},
        404: {"description": "No dosing profile for the user"},
        422: {"model": ValidationErrorResponse, "description": "Input out of range"},
    },
)
async def calculate(
    user_id: uuid.UUID,
    body: DoseCalculationRequest,
    entry_store: EntryStore = Depends(get_entry_store),
    profile_store: ProfileStore = Depends(get_profile_store),
    policy: PolicyConfig = Depends(get_policy),
) -> DoseCalculationResponse | JSONResponse:
    """Calculate a suggested bolus.

    A hypoglycemia block is a normal 200 response in state
    ``hypo_blocked`` carrying only the advisory; clients MUST show it in
    place of any dose UI.
    """
    try:
        outcome = await calculate_dose(
            user_id,
            body.glucose,
            body.carbs,
            body.trend,
            entry_store=entry_store,
            profile_store=profile_store,
            policy=policy,
        )
    except ProfileNotFoundError as e:
        raise _profile_not_found(e) from e

    if outcome.state == GateState.idle:
        return _validation_error(outcome)

    has_dose = outcome.result is not None
    return DoseCalculationResponse(
        state=outcome.state,
        glucose_status=outcome.glucose_status,
        breakdown=_breakdown(outcome),
        pre_cap_dose=outcome.pre_cap_dose,
        advisory=_advisory(outcome),
        warnings=outcome.warnings,
        requires_acknowledgement=outcome.state == GateState.above_max_pending_ack,
        requires_confirmation=(
            has_dose and policy.require_two_step_confirm_for_recording
        ),
    )


@router.post(
    "/record",
    response_model=RecordedDoseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Dose recorded as a rapid-acting insulin entry"},
        404: {"description": "No dosing profile for the user"},
        409: {
            "model": DoseRejectionResponse,
            "description": "A gate requirement is unmet",
        },
        422: {"model": ValidationErrorResponse, "description": "Input out of range"},
    },
)
async def record(
    user_id: uuid.UUID,
    body: DoseRecordRequest,
    db: AsyncSession = Depends(get_db),
    entry_store: EntryStore = Depends(get_entry_store),
    profile_store: ProfileStore = Depends(get_profile_store),
    policy: PolicyConfig = Depends(get_policy),
) -> RecordedDoseResponse | JSONResponse:
    """Record the calculated dose after acknowledgment and confirmation.

    Each rejection needs a new explicit user action before re-invoking;
    clients must not retry automatically.
    """
    try:
        outcome, recorded = await record_dose(
            user_id,
            body.glucose,
            body.carbs,
            body.trend,
            acknowledged=body.acknowledged,
            confirmed=body.confirmed,
            expected_final_dose=body.expected_final_dose,
            entry_store=entry_store,
            profile_store=profile_store,
            policy=policy,
        )
    except ProfileNotFoundError as e:
        raise _profile_not_found(e) from e

    if outcome.state == GateState.idle:
        return _validation_error(outcome)

    if isinstance(recorded, Rejected):
        body_out = DoseRejectionResponse(
            gate_state=outcome.state,
            reason=recorded.reason,
            outstanding=recorded.outstanding,
            message=recorded.message,
            breakdown=_breakdown(outcome),
            advisory=_advisory(outcome),
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=body_out.model_dump(mode="json"),
        )

    await db.commit()
    return RecordedDoseResponse.model_validate(recorded)
