"""Two-step dose confirmation.

The only place in the dosing core with a side effect: once every gate
requirement is met, a new rapid-acting InsulinEntry is appended to the
entry store. Acknowledgment and confirmation are independent
preconditions; neither is retried automatically.
"""

from datetime import UTC, datetime

from doseguard.core.dosing.constants import (
    CALCULATOR_ENTRY_NOTE,
    CALCULATOR_ENTRY_REASON,
)
from doseguard.core.dosing.enums import GateState, InsulinType, RejectionReason
from doseguard.core.dosing.models import GateOutcome, InsulinEntry, Rejected
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.stores import EntryStore
from doseguard.logging_config import get_logger

logger = get_logger(__name__)

_REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.hypo_blocked: (
        "Blood sugar is below the hypoglycemia threshold. Insulin cannot be recorded."
    ),
    RejectionReason.invalid_input: "The calculation did not pass input validation.",
    RejectionReason.ack_required: "Please confirm the maximum dose warning.",
    RejectionReason.confirmation_required: (
        "Please confirm the dose before it is recorded."
    ),
    RejectionReason.no_dose: "The suggested dose is 0 units; nothing to record.",
    RejectionReason.dose_changed: (
        "The dose changed since it was shown. Review the new calculation."
    ),
}


def rejection(*reasons: RejectionReason) -> Rejected:
    """Build a Rejected whose primary reason is the first given."""
    return Rejected(
        reason=reasons[0],
        outstanding=list(reasons),
        message=_REJECTION_MESSAGES[reasons[0]],
    )


class ConfirmationFlow:
    """Records a finalized dose after explicit human confirmation."""

    def __init__(self, policy: PolicyConfig, entry_store: EntryStore) -> None:
        self.policy = policy
        self.entry_store = entry_store

    def check(
        self, outcome: GateOutcome, *, ack: bool, confirm: bool
    ) -> Rejected | None:
        """Return the rejection for ``outcome`` or None when it may be recorded.

        A hypo-blocked outcome is rejected before any other requirement is
        looked at, whatever ``ack`` and ``confirm`` say.
        """
        if outcome.state == GateState.hypo_blocked:
            return rejection(RejectionReason.hypo_blocked)
        if outcome.result is None:
            return rejection(RejectionReason.invalid_input)

        outstanding: list[RejectionReason] = []
        if (
            self.policy.require_acknowledgement_above_max
            and outcome.result.is_above_max
            and not ack
        ):
            outstanding.append(RejectionReason.ack_required)
        if self.policy.require_two_step_confirm_for_recording and not confirm:
            outstanding.append(RejectionReason.confirmation_required)
        if outstanding:
            return rejection(*outstanding)

        if outcome.result.final_dose <= 0:
            return rejection(RejectionReason.no_dose)
        return None

    async def confirm_and_record(
        self,
        outcome: GateOutcome,
        *,
        ack: bool,
        confirm: bool,
        now: datetime | None = None,
    ) -> InsulinEntry | Rejected:
        """Append the finalized dose as a rapid-acting entry.

        Args:
            outcome: Gate outcome carrying the DoseCalculationResult.
            ack: The user acknowledged the above-maximum warning.
            confirm: The user passed the explicit confirmation step.
            now: Entry timestamp; defaults to the current server time.

        Returns:
            The stored InsulinEntry (with its id), or Rejected naming every
            unmet requirement.
        """
        rejected = self.check(outcome, ack=ack, confirm=confirm)
        if rejected is not None:
            logger.info(
                "Dose recording rejected",
                reason=rejected.reason.value,
                outstanding=[r.value for r in rejected.outstanding],
                state=outcome.state.value,
            )
            return rejected

        entry = InsulinEntry(
            timestamp=now or datetime.now(UTC),
            units=outcome.result.final_dose,
            insulin_type=InsulinType.rapid,
            reason=CALCULATOR_ENTRY_REASON,
            note=CALCULATOR_ENTRY_NOTE,
        )
        entry_id = await self.entry_store.append_insulin_entry(entry)

        logger.info(
            "Dose recorded",
            entry_id=str(entry_id),
            units=entry.units,
            is_above_max=outcome.result.is_above_max,
        )
        return entry.model_copy(update={"id": entry_id})
