"""Store interfaces consumed by the dosing core.

The core only reads insulin history and dosing profiles and appends new
insulin entries. Concrete adapters live in doseguard.services.
"""

import abc
import uuid
from datetime import datetime

from doseguard.core.dosing.models import InsulinEntry, UserDosingProfile


class EntryStore(abc.ABC):
    """Append-only insulin history for a single user."""

    @abc.abstractmethod
    async def list_insulin_entries(self, since: datetime) -> list[InsulinEntry]:
        """Return entries stamped at or after ``since``.

        Entries come back in insertion order with the exact timestamp and
        units they were stored with.
        """

    @abc.abstractmethod
    async def append_insulin_entry(self, entry: InsulinEntry) -> uuid.UUID:
        """Append ``entry`` and return its new id."""


class ProfileStore(abc.ABC):
    """Read access to dosing profiles."""

    @abc.abstractmethod
    async def get_dosing_profile(self, user_id: uuid.UUID) -> UserDosingProfile:
        """Return the user's profile with missing fields defaulted.

        Raises:
            ProfileNotFoundError: If the user has no profile at all.
        """
