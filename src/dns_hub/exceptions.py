"""
Exceptions raised by DNS Hub.

Transport and content validation errors surface to the caller of the
triggering action. Capability violations are prevented by the field filter
and only raised when an unfiltered payload reaches the client. State
inconsistencies are recovered from silently and exist so they can be logged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class DnsHubError(Exception):
    """Base class for all DNS Hub errors."""


class TransportError(DnsHubError):
    """
    Network or HTTP failure, or a backend envelope reporting failure.

    Attributes
    ----------
    message : str
        Human-readable error message (the backend's message when available).
    status_code : int | None
        HTTP status code, when a response was received.
    details : Any
        Raw error payload from the backend, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class CapabilityViolation(DnsHubError):
    """
    An outbound payload carries a field the active provider does not support.

    Attributes
    ----------
    provider : str | None
        The active provider.
    fields : tuple[str, ...]
        The offending field names.
    """

    def __init__(self, provider: str | None, fields: tuple[str, ...]) -> None:
        self.provider = provider
        self.fields = fields
        super().__init__(
            f"Fields not supported by provider {provider!r}: {', '.join(fields)}",
        )


class ContentValidationError(DnsHubError):
    """
    Record content fails the format check for its type.

    Attributes
    ----------
    record_type : str
        The record type being validated.
    content : str
        The rejected content.
    """

    def __init__(self, record_type: str, content: str, reason: str) -> None:
        self.record_type = record_type
        self.content = content
        super().__init__(f"Invalid {record_type} record content {content!r}: {reason}")


class StateInconsistency(DnsHubError):
    """Persisted selection refers to a provider or credential that no longer exists."""
