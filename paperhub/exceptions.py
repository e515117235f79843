"""Error taxonomy for PaperHub.

Every error carries a user-facing ``message``; ``status_code`` is the HTTP
status the API layer answers with when the error reaches a route.
"""

from typing import Optional


class PaperHubError(Exception):
    """Base exception for all PaperHub errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)


# Input errors: rejected before any network call
class InputError(PaperHubError):
    """Request is missing required input."""

    status_code = 400


class EmptyDraftError(InputError):
    """Draft has no questions to save."""


class NoDraftError(InputError):
    """No draft has been loaded into the editor."""


class PaperNotPublishedError(InputError):
    """Only published papers can be adopted into a workspace."""


# Authorization errors: rejected locally, never left to the store
class AuthorizationError(PaperHubError):
    """Caller may not perform this action."""

    status_code = 403


class NotAuthenticatedError(AuthorizationError):
    """No identity available for a mutating operation."""

    status_code = 401


class NotOwnerError(AuthorizationError):
    """Identity does not own the target document."""


class AdminRequiredError(AuthorizationError):
    """Identity is not a catalogue administrator."""


# Lookup errors
class NotFoundError(PaperHubError):
    """Requested document does not exist."""

    status_code = 404


# Persistence errors
class PersistenceError(PaperHubError):
    """Document store was unreachable or rejected a write."""

    status_code = 500


# Configuration errors
class ConfigError(PaperHubError):
    """Configuration error."""


class MissingAPIKeyError(ConfigError):
    """Required API key not configured."""
