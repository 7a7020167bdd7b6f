"""External identity providers."""

from integrations.identity import FederatedIdentity, IdentityError, IdentityVerifier, get_identity_verifier

__all__ = ["FederatedIdentity", "IdentityError", "IdentityVerifier", "get_identity_verifier"]
