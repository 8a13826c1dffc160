"""Tests for the two-step dose confirmation flow."""

from datetime import UTC, datetime
from itertools import product

import pytest

from doseguard.core.dosing.confirmation import ConfirmationFlow, rejection
from doseguard.core.dosing.constants import (
    CALCULATOR_ENTRY_NOTE,
    CALCULATOR_ENTRY_REASON,
)
from doseguard.core.dosing.enums import GateState, InsulinType, RejectionReason
from doseguard.core.dosing.gate import SafetyGate
from doseguard.core.dosing.models import InsulinEntry, Rejected
from doseguard.core.dosing.policy import PolicyConfig

_NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC)


def _outcome(policy, profile, glucose=180, carbs=60):
    return SafetyGate(policy).evaluate(
        glucose=glucose,
        carbs=carbs,
        trend="stable",
        profile=profile,
        entries=(),
        now=_NOW,
    )


class TestRejectionHelper:
    def test_primary_reason_is_first(self):
        rejected = rejection(
            RejectionReason.ack_required, RejectionReason.confirmation_required
        )
        assert rejected.reason == RejectionReason.ack_required
        assert rejected.outstanding == [
            RejectionReason.ack_required,
            RejectionReason.confirmation_required,
        ]
        assert rejected.message

    @pytest.mark.parametrize("reason", list(RejectionReason))
    def test_every_reason_has_message(self, reason):
        assert rejection(reason).message


class TestHypoBlocked:
    @pytest.mark.parametrize(("ack", "confirm"), list(product([False, True], repeat=2)))
    async def test_rejected_whatever_the_flags(
        self, policy, profile, entry_store, ack, confirm
    ):
        outcome = _outcome(policy, profile, glucose=55)
        flow = ConfirmationFlow(policy, entry_store)

        result = await flow.confirm_and_record(outcome, ack=ack, confirm=confirm)

        assert isinstance(result, Rejected)
        assert result.reason == RejectionReason.hypo_blocked
        assert result.outstanding == [RejectionReason.hypo_blocked]
        assert entry_store.entries == []


class TestRequirements:
    async def test_confirmation_required(self, policy, profile, entry_store):
        flow = ConfirmationFlow(policy, entry_store)
        result = await flow.confirm_and_record(
            _outcome(policy, profile), ack=False, confirm=False
        )
        assert result.reason == RejectionReason.confirmation_required
        assert entry_store.entries == []

    async def test_ack_required_above_max(self, policy, profile, entry_store):
        outcome = SafetyGate(policy).acknowledge(_outcome(policy, profile, carbs=150))
        flow = ConfirmationFlow(policy, entry_store)

        result = await flow.confirm_and_record(outcome, ack=False, confirm=True)

        assert result.reason == RejectionReason.ack_required
        assert result.outstanding == [RejectionReason.ack_required]
        assert entry_store.entries == []

    async def test_both_outstanding(self, policy, profile, entry_store):
        outcome = _outcome(policy, profile, carbs=150)
        flow = ConfirmationFlow(policy, entry_store)

        result = await flow.confirm_and_record(outcome, ack=False, confirm=False)

        assert result.reason == RejectionReason.ack_required
        assert RejectionReason.confirmation_required in result.outstanding

    async def test_no_dose(self, policy, profile, entry_store):
        # Glucose in range and no carbs: nothing to give
        outcome = _outcome(policy, profile, glucose=100, carbs=0)
        flow = ConfirmationFlow(policy, entry_store)

        result = await flow.confirm_and_record(outcome, ack=False, confirm=True)

        assert result.reason == RejectionReason.no_dose
        assert entry_store.entries == []

    def test_check_does_not_touch_store(self, policy, profile, entry_store):
        flow = ConfirmationFlow(policy, entry_store)
        assert flow.check(_outcome(policy, profile), ack=False, confirm=True) is None
        assert entry_store.entries == []


class TestRecording:
    async def test_records_rapid_entry(self, policy, profile, entry_store):
        flow = ConfirmationFlow(policy, entry_store)

        entry = await flow.confirm_and_record(
            _outcome(policy, profile), ack=False, confirm=True, now=_NOW
        )

        assert isinstance(entry, InsulinEntry)
        assert entry.id is not None
        assert entry.units == 8.5
        assert entry.insulin_type == InsulinType.rapid
        assert entry.timestamp == _NOW
        assert entry.reason == CALCULATOR_ENTRY_REASON
        assert entry.note == CALCULATOR_ENTRY_NOTE
        assert entry_store.entries == [entry]

    async def test_records_capped_dose_after_ack(self, policy, profile, entry_store):
        gate = SafetyGate(policy)
        outcome = gate.acknowledge(_outcome(policy, profile, carbs=150))
        flow = ConfirmationFlow(policy, entry_store)

        entry = await flow.confirm_and_record(outcome, ack=True, confirm=True)

        assert outcome.state == GateState.finalized
        assert entry.units == profile.max_bolus

    async def test_recording_only_appends(self, policy, profile, entry_store):
        flow = ConfirmationFlow(policy, entry_store)
        outcome = _outcome(policy, profile)

        first = await flow.confirm_and_record(outcome, ack=False, confirm=True)
        second = await flow.confirm_and_record(outcome, ack=False, confirm=True)

        assert entry_store.entries == [first, second]
        assert first.id != second.id

    async def test_confirmation_can_be_disabled(self, profile, entry_store):
        policy = PolicyConfig(require_two_step_confirm_for_recording=False)
        flow = ConfirmationFlow(policy, entry_store)

        entry = await flow.confirm_and_record(
            _outcome(policy, profile), ack=False, confirm=False
        )

        assert isinstance(entry, InsulinEntry)

    async def test_ack_can_be_disabled(self, profile, entry_store):
        policy = PolicyConfig(require_acknowledgement_above_max=False)
        flow = ConfirmationFlow(policy, entry_store)
        outcome = _outcome(policy, profile, carbs=150)

        entry = await flow.confirm_and_record(outcome, ack=False, confirm=True)

        assert outcome.state == GateState.finalized
        assert entry.units == 15

    async def test_store_failure_propagates(self, policy, profile, entry_store):
        async def _boom(entry):
            raise ConnectionError("database unavailable")

        entry_store.append_insulin_entry = _boom
        flow = ConfirmationFlow(policy, entry_store)

        with pytest.raises(ConnectionError):
            await flow.confirm_and_record(
                _outcome(policy, profile), ack=False, confirm=True
            )
