"""Intendance: equipment stock ledger with movement history and equipment cards."""

__version__ = "1.0.0"
