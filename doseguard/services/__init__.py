# Business Logic Services
from doseguard.services.dose_calculation import calculate_dose, record_dose
from doseguard.services.entry_store import SqlEntryStore
from doseguard.services.profile_store import SqlProfileStore

__all__ = [
    "SqlEntryStore",
    "SqlProfileStore",
    "calculate_dose",
    "record_dose",
]
