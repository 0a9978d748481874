"""Identity Provider Port - Domain interface for the hosted auth provider.

The teardown service only needs two admin operations from the provider:
revoking live sessions and removing a user. Both are best-effort; callers
decide what to do when they fail.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects or cannot serve a call."""
    pass


class IdentityProviderPort(ABC):
    """Port interface for identity provider admin operations."""

    @abstractmethod
    def revoke_user_sessions(self, user_id: str) -> None:
        """Invalidate every live session of the user.

        Raises:
            IdentityProviderError: If the provider call fails
        """
        pass

    @abstractmethod
    def remove_user(self, user_id: str) -> None:
        """Remove the user and the provider's own rows for it.

        Raises:
            IdentityProviderError: If the provider call fails
        """
        pass
