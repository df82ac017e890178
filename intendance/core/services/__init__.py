"""Core domain services."""

from intendance.core.services.permissions import ServicePermissions, default_permissions

__all__ = [
    "ServicePermissions",
    "default_permissions",
]
