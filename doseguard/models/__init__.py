# Database Models
from doseguard.models.base import Base, TimestampMixin
from doseguard.models.dosing_profile import DosingProfile
from doseguard.models.insulin_entry import InsulinLogEntry

__all__ = [
    "Base",
    "DosingProfile",
    "InsulinLogEntry",
    "TimestampMixin",
]
