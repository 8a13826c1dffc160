"""SQLAlchemy-backed insulin entry store.

Bound to one user and one session. Appends flush but do not commit;
the caller owns the transaction boundary.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from doseguard.core.dosing.models import InsulinEntry
from doseguard.core.dosing.stores import EntryStore
from doseguard.logging_config import get_logger
from doseguard.models.insulin_entry import InsulinLogEntry

logger = get_logger(__name__)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_insulin_entry(row: InsulinLogEntry) -> InsulinEntry:
    """Convert a stored row to the core model without touching its values."""
    return InsulinEntry(
        id=row.id,
        timestamp=_as_aware(row.entry_timestamp),
        units=row.units,
        insulin_type=row.insulin_type,
        reason=row.reason,
        note=row.note,
    )


class SqlEntryStore(EntryStore):
    """Insulin history for ``user_id`` stored in ``insulin_entries``."""

    def __init__(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        self._db = db
        self.user_id = user_id

    async def list_insulin_entries(self, since: datetime) -> list[InsulinEntry]:
        result = await self._db.execute(
            select(InsulinLogEntry)
            .where(
                InsulinLogEntry.user_id == self.user_id,
                InsulinLogEntry.entry_timestamp >= since,
            )
            .order_by(InsulinLogEntry.sequence)
        )
        return [to_insulin_entry(row) for row in result.scalars().all()]

    async def append_insulin_entry(self, entry: InsulinEntry) -> uuid.UUID:
        row = InsulinLogEntry(
            id=entry.id or uuid.uuid4(),
            user_id=self.user_id,
            entry_timestamp=entry.timestamp,
            units=entry.units,
            insulin_type=entry.insulin_type,
            reason=entry.reason,
            note=entry.note,
        )
        self._db.add(row)
        # Flush (not commit) so constraint violations surface here while
        # the caller still controls the transaction.
        await self._db.flush()

        logger.debug(
            "Appended insulin entry",
            user_id=str(self.user_id),
            entry_id=str(row.id),
        )
        return row.id
