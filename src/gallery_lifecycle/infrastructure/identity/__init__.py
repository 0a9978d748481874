from .http_identity_provider import HttpIdentityProviderAdapter, build_identity_provider

__all__ = ["HttpIdentityProviderAdapter", "build_identity_provider"]
