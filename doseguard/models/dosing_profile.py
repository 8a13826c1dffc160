"""Dosing profile model.

One row per user. Every ratio column is nullable: a missing value is
filled from the dosing policy defaults when the profile is read, never
stored here.
"""

import uuid

from sqlalchemy import Float
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from doseguard.models.base import Base, TimestampMixin


class DosingProfile(Base, TimestampMixin):
    """User-specific insulin dosing ratios and limits."""

    __tablename__ = "dosing_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        unique=True,
        index=True,
    )

    icr: Mapped[float | None] = mapped_column(Float, nullable=True)
    isf: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_bolus: Mapped[float | None] = mapped_column(Float, nullable=True)
    active_insulin_hours: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<DosingProfile(user_id={self.user_id}, icr={self.icr}, "
            f"isf={self.isf}, target={self.target_low}-{self.target_high}, "
            f"max_bolus={self.max_bolus}, dia={self.active_insulin_hours}h)>"
        )
