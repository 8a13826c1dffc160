"""Insulin on Board (IoB) engine.

Estimates how much previously administered rapid-acting insulin is
still active, using a linear decay to zero at exactly the duration of
insulin action. Pure functions of their inputs: callers pass a fixed
``now`` and an immutable snapshot of entries.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from doseguard.core.dosing.enums import InsulinType
from doseguard.core.dosing.models import InsulinEntry
from doseguard.core.dosing.policy import DEFAULT_POLICY, PolicyConfig
from doseguard.core.dosing.rounding import round_to_increment


def insulin_remaining_fraction(
    elapsed_hours: float, active_insulin_hours: float
) -> float:
    """Fraction of a dose still active after ``elapsed_hours``.

    Linear model: 1.0 at delivery, 0.0 at (and after) the end of the
    active window.

    Args:
        elapsed_hours: Hours since the dose was delivered.
        active_insulin_hours: Duration of insulin action.

    Returns:
        Fraction of the dose remaining (0.0 to 1.0).
    """
    if active_insulin_hours <= 0:
        msg = "active_insulin_hours must be positive"
        raise ValueError(msg)
    if elapsed_hours <= 0:
        return 1.0
    return max(0.0, 1.0 - elapsed_hours / active_insulin_hours)


def active_entries(
    now: datetime,
    entries: Iterable[InsulinEntry],
    active_insulin_hours: float,
) -> list[InsulinEntry]:
    """Rapid-acting entries delivered within the active window ending at ``now``.

    Entries stamped after ``now`` have not been administered yet and are
    excluded.
    """
    cutoff = now - timedelta(hours=active_insulin_hours)
    return [
        entry
        for entry in entries
        if entry.insulin_type == InsulinType.rapid and cutoff <= entry.timestamp <= now
    ]


def compute_iob(
    now: datetime,
    entries: Iterable[InsulinEntry],
    active_insulin_hours: float,
    policy: PolicyConfig = DEFAULT_POLICY,
) -> float:
    """Compute total insulin on board at ``now``.

    Args:
        now: Reference time (timezone-aware).
        entries: Insulin history; may be the full history or a window.
        active_insulin_hours: Duration of insulin action.
        policy: Supplies the IOB rounding increment.

    Returns:
        Remaining units summed over qualifying entries, rounded to the
        policy's IOB increment (0.1 by default). 0.0 with no entries.
    """
    total = 0.0
    for entry in active_entries(now, entries, active_insulin_hours):
        elapsed = (now - entry.timestamp).total_seconds() / 3600
        total += entry.units * insulin_remaining_fraction(elapsed, active_insulin_hours)
    return round_to_increment(total, policy.iob_rounding_increment)
