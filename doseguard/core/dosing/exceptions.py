"""Dosing exceptions.

HypoBlocked is deliberately absent: a hypoglycemia block is a gate
state, not an error.
"""

from doseguard.core.dosing.models import FieldError


class DoseGuardError(Exception):
    """Base exception for dosing errors."""

    pass


class DoseInputError(DoseGuardError, ValueError):
    """Calculator input failed validation.

    Carries one FieldError per offending field.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__(
            "; ".join(f"{error.field}: {error.message}" for error in errors)
        )


class GateTransitionError(DoseGuardError, ValueError):
    """A transition was requested from a state that does not allow it."""

    pass


class ProfileNotFoundError(DoseGuardError):
    """No dosing profile exists for the user."""

    pass
