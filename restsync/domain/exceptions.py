"""Domain-specific exceptions — framework-independent."""

from typing import Any


class RestSyncError(Exception):
    """Base class for every error raised by the sync layer."""


class ConfigurationError(RestSyncError):
    """Raised before any network call when an entity is not set up for an operation.

    Missing endpoints and missing primary keys both end up here.
    """

    def __init__(self, entity_type: str, message: str):
        self.entity_type = entity_type
        self.message = message
        super().__init__(f"{entity_type}: {message}")


class TransportError(RestSyncError):
    """Raised by a transport when a request did not succeed."""


class HttpStatusError(TransportError):
    """Raised when the remote API answered with a non-2xx status.

    The decoded response is kept on the exception so callers can inspect
    the status, reason and payload.
    """

    def __init__(self, response: Any):
        self.response = response
        super().__init__(f"{response.status} {response.reason}")

    @property
    def status(self) -> int:
        return self.response.status


class EntityValidationError(HttpStatusError):
    """422 — the API rejected the submitted attributes."""


class ServerError(HttpStatusError):
    """Any other non-2xx status."""


class TransportFailure(TransportError):
    """Raised when no response was received at all (connectivity, DNS, ...).

    ``str()`` of the failure is its own description, which is what ends
    up as an entity's error summary.
    """

    def __init__(self, description: str, cause: Exception | None = None):
        self.description = description
        self.cause = cause
        super().__init__(description)


class StoreError(RestSyncError):
    """Raised when the local store cannot answer a query consistently."""


class ErrorPathError(RestSyncError):
    """Raised when a validation error path cannot be walked onto nested entities."""

    def __init__(self, path: str, segment: str):
        self.path = path
        self.segment = segment
        super().__init__(
            f"Cannot map error for '{path}': segment '{segment}' is not a nested entity"
        )
