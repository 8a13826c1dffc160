"""Dose calculation service.

Orchestrates one calculation request: reads the dosing profile, takes
an immutable snapshot of the insulin history for the active window, and
runs the safety gate. Recording re-runs the calculation server-side so
the dose written is always the one the gate produced.
"""

import math
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from doseguard.core.dosing.confirmation import ConfirmationFlow, rejection
from doseguard.core.dosing.enums import GateState, RejectionReason
from doseguard.core.dosing.gate import SafetyGate
from doseguard.core.dosing.models import GateOutcome, InsulinEntry, Rejected
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.stores import EntryStore, ProfileStore
from doseguard.logging_config import get_logger

logger = get_logger(__name__)


async def calculate_dose(
    user_id: uuid.UUID,
    glucose: Any,
    carbs: Any,
    trend: Any,
    *,
    entry_store: EntryStore,
    profile_store: ProfileStore,
    policy: PolicyConfig,
    gate: SafetyGate | None = None,
    now: datetime | None = None,
) -> GateOutcome:
    """Calculate a suggested bolus for a user.

    Store failures and a missing profile propagate to the caller; they
    are never replaced by defaults.

    Args:
        user_id: User whose profile and history are read.
        glucose: Raw glucose input (mg/dL).
        carbs: Raw carbohydrate input (grams).
        trend: Raw trend input.
        entry_store: Insulin history for the user.
        profile_store: Dosing profile source.
        policy: Process-wide safety policy.
        gate: Gate to evaluate with; defaults to SafetyGate(policy).
        now: Reference time; defaults to server time.

    Returns:
        The gate outcome (idle, hypo_blocked, above_max_pending_ack or
        finalized).
    """
    now = now or datetime.now(UTC)

    profile = await profile_store.get_dosing_profile(user_id)
    since = now - timedelta(hours=profile.active_insulin_hours)
    entries = tuple(await entry_store.list_insulin_entries(since))

    gate = gate or SafetyGate(policy)
    outcome = gate.evaluate(
        glucose=glucose,
        carbs=carbs,
        trend=trend,
        profile=profile,
        entries=entries,
        now=now,
    )

    logger.info(
        "Dose calculation completed",
        user_id=str(user_id),
        state=outcome.state.value,
        final_dose=outcome.result.final_dose if outcome.result else None,
        entries_considered=len(entries),
    )
    return outcome


async def record_dose(
    user_id: uuid.UUID,
    glucose: Any,
    carbs: Any,
    trend: Any,
    *,
    acknowledged: bool,
    confirmed: bool,
    entry_store: EntryStore,
    profile_store: ProfileStore,
    policy: PolicyConfig,
    expected_final_dose: float | None = None,
    now: datetime | None = None,
) -> tuple[GateOutcome, InsulinEntry | Rejected]:
    """Recalculate and, if every gate is satisfied, record the dose.

    ``expected_final_dose`` is the dose the user was shown. When given
    and the fresh calculation disagrees (e.g. new insulin was logged in
    between), recording is refused with ``dose_changed``.

    The caller is responsible for committing the session after a
    successful append.

    Returns:
        Tuple of (fresh GateOutcome, stored InsulinEntry or Rejected).
    """
    now = now or datetime.now(UTC)
    gate = SafetyGate(policy)
    outcome = await calculate_dose(
        user_id,
        glucose,
        carbs,
        trend,
        entry_store=entry_store,
        profile_store=profile_store,
        policy=policy,
        gate=gate,
        now=now,
    )

    if (
        expected_final_dose is not None
        and outcome.result is not None
        and not math.isclose(
            outcome.result.final_dose, expected_final_dose, abs_tol=1e-9
        )
    ):
        logger.warning(
            "Dose changed since it was displayed",
            user_id=str(user_id),
            expected_final_dose=expected_final_dose,
            final_dose=outcome.result.final_dose,
        )
        return outcome, rejection(RejectionReason.dose_changed)

    if acknowledged and outcome.state == GateState.above_max_pending_ack:
        outcome = gate.acknowledge(outcome)

    flow = ConfirmationFlow(policy, entry_store)
    recorded = await flow.confirm_and_record(
        outcome, ack=acknowledged, confirm=confirmed, now=now
    )
    return outcome, recorded
