"""Dosing enums.

States, reasons and categorical inputs for the dosing subsystem.
See __init__.py for important safety context.
"""

from enum import StrEnum, auto


class InsulinType(StrEnum):
    """Kind of insulin recorded in an entry.

    Only ``rapid`` entries count towards insulin on board.
    """

    rapid = auto()
    basal = auto()


class GlucoseTrend(StrEnum):
    """Direction the glucose reading is moving."""

    rising = auto()
    stable = auto()
    falling = auto()


class GlucoseStatus(StrEnum):
    """Coarse classification of a glucose value against policy thresholds."""

    low = auto()
    normal = auto()
    high = auto()


class GateState(StrEnum):
    """States of the dosing safety gate.

    ``hypo_blocked`` is terminal: no acknowledgment or confirmation can
    move a blocked calculation forward.
    """

    idle = auto()
    validating = auto()
    hypo_blocked = auto()
    calculated = auto()
    above_max_pending_ack = auto()
    finalized = auto()
    rejected = auto()


class RejectionReason(StrEnum):
    """Why a dose could not be recorded."""

    hypo_blocked = auto()
    invalid_input = auto()
    ack_required = auto()
    confirmation_required = auto()
    no_dose = auto()
    dose_changed = auto()
