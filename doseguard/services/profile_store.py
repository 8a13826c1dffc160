"""SQLAlchemy-backed dosing profile store.

Missing individual fields are filled from the dosing policy. A missing
profile row, or a failing database, is NOT masked with defaults.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from doseguard.core.dosing.exceptions import ProfileNotFoundError
from doseguard.core.dosing.models import UserDosingProfile
from doseguard.core.dosing.policy import PolicyConfig
from doseguard.core.dosing.stores import ProfileStore
from doseguard.logging_config import get_logger
from doseguard.models.dosing_profile import DosingProfile

logger = get_logger(__name__)

_PROFILE_FIELDS = (
    "icr",
    "isf",
    "target_low",
    "target_high",
    "max_bolus",
    "active_insulin_hours",
)


class SqlProfileStore(ProfileStore):
    """Reads ``dosing_profiles`` rows and resolves them against policy."""

    def __init__(self, db: AsyncSession, policy: PolicyConfig) -> None:
        self._db = db
        self.policy = policy

    async def get_dosing_profile(self, user_id: uuid.UUID) -> UserDosingProfile:
        result = await self._db.execute(
            select(DosingProfile).where(DosingProfile.user_id == user_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise ProfileNotFoundError(f"No dosing profile for user {user_id}")

        stored = {field: getattr(row, field) for field in _PROFILE_FIELDS}
        defaulted = [field for field, value in stored.items() if value is None]
        if defaulted:
            logger.info(
                "Applied policy defaults to dosing profile",
                user_id=str(user_id),
                fields=defaulted,
            )
        return self.policy.resolve_profile(**stored)
