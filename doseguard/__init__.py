"""DoseGuard: insulin bolus calculator API."""
