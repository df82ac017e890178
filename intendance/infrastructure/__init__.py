"""Infrastructure layer implementations."""

from intendance.infrastructure import storage

__all__ = ["storage"]
