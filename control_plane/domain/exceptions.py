from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class ReconciliationError(DomainError):
    """An OAuth profile could not be mapped to an account."""


class StoreUnavailableError(ReconciliationError):
    """The identity or plan store failed to answer."""


class IdentityConflictError(DomainError):
    """An insert hit a uniqueness constraint in the identity store."""


class ProviderProfileMalformedError(DomainError):
    """The provider profile lacks the fields needed to identify the user."""


class SubscriptionProvisioningError(DomainError):
    """The default plan could not be assigned to a new account."""


class SigningError(DomainError):
    """A session token could not be signed."""


class InvalidSessionTokenError(DomainError):
    """A session token is malformed, tampered with or expired."""


class OAuthExchangeError(DomainError):
    """The provider rejected the authorization code or returned garbage."""


class UserNotFoundError(DomainError):
    """The account referenced by a session token no longer exists."""
