"""Core domain layer - entities, interfaces, and exceptions."""

from intendance.core import entities, exceptions, interfaces, services

__all__ = ["entities", "interfaces", "exceptions", "services"]
