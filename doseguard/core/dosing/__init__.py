"""Insulin bolus dosing.

This package computes a *suggested* bolus for a human to review and
record manually. It never delivers or schedules insulin. Components,
leaf-first:

1. PolicyConfig -- immutable safety constants and profile defaults
2. IoB engine -- linear decay of recent rapid-acting insulin
3. DoseCalculator -- meal + correction - IoB, rounded, floored
4. SafetyGate -- input validation, hypoglycemia block, max-dose cap
5. ConfirmationFlow -- acknowledgment + confirmation before recording

IMPORTANT: This is a software safety layer -- it does NOT replace
clinical judgment. A hypoglycemia block cannot be overridden by any
acknowledgment or confirmation.
"""

from doseguard.core.dosing.calculator import DoseCalculator
from doseguard.core.dosing.confirmation import ConfirmationFlow
from doseguard.core.dosing.enums import (
    GateState,
    GlucoseStatus,
    GlucoseTrend,
    InsulinType,
    RejectionReason,
)
from doseguard.core.dosing.exceptions import (
    DoseGuardError,
    DoseInputError,
    GateTransitionError,
    ProfileNotFoundError,
)
from doseguard.core.dosing.gate import SafetyGate, classify_glucose, validate_dose_input
from doseguard.core.dosing.iob import compute_iob
from doseguard.core.dosing.models import (
    DoseCalculationResult,
    DoseInput,
    FieldError,
    GateOutcome,
    HypoAdvisory,
    InsulinEntry,
    Rejected,
    UserDosingProfile,
)
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.stores import EntryStore, ProfileStore

__all__ = [
    "ConfirmationFlow",
    "DoseCalculationResult",
    "DoseCalculator",
    "DoseGuardError",
    "DoseInput",
    "DoseInputError",
    "EntryStore",
    "FieldError",
    "GateOutcome",
    "GateState",
    "GateTransitionError",
    "GlucoseStatus",
    "GlucoseTrend",
    "HypoAdvisory",
    "InsulinEntry",
    "InsulinType",
    "PolicyConfig",
    "ProfileNotFoundError",
    "ProfileStore",
    "Rejected",
    "RejectionReason",
    "SafetyGate",
    "UserDosingProfile",
    "classify_glucose",
    "compute_iob",
    "validate_dose_input",
]
