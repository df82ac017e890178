"""Storage backends."""

from intendance.infrastructure.storage import sqlite

__all__ = ["sqlite"]
