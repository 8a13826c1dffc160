"""Insulin entry model.

Append-only log of insulin administrations. Rows are never updated by
the dosing core; ``sequence`` preserves insertion order independently of
the (user-editable) administration timestamp.
"""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, Float, Identity, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from doseguard.core.dosing.enums import InsulinType
from doseguard.models.base import Base, TimestampMixin


class InsulinLogEntry(Base, TimestampMixin):
    """A single recorded insulin dose."""

    __tablename__ = "insulin_entries"

    __table_args__ = (
        # Windowed reads for IoB: one user's entries since a cutoff
        Index("ix_insulin_entries_user_timestamp", "user_id", "entry_timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    sequence: Mapped[int] = mapped_column(
        BigInteger,
        Identity(always=True),
        nullable=False,
        unique=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        index=True,
    )

    entry_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Double precision: values are returned exactly as written
    units: Mapped[float] = mapped_column(
        Float(precision=53),
        nullable=False,
    )

    insulin_type: Mapped[InsulinType] = mapped_column(
        Enum(
            InsulinType,
            name="insulintype",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )

    reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    note: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<InsulinLogEntry(user_id={self.user_id}, "
            f"type={self.insulin_type}, units={self.units}, "
            f"at={self.entry_timestamp})>"
        )
