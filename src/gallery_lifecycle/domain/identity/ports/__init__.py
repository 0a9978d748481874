from .identity_provider_port import IdentityProviderError, IdentityProviderPort

__all__ = ["IdentityProviderError", "IdentityProviderPort"]
