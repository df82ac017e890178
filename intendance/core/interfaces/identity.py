"""Abstract interface for the current actor."""

from abc import ABC, abstractmethod


class IIdentityProvider(ABC):
    """Supplies the identity stamped on movements and audit entries."""

    @property
    @abstractmethod
    def current_user(self) -> str:
        """Name of the user performing the action."""
        pass
