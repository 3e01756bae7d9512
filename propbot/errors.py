from __future__ import annotations

from typing import Optional


class PropbotError(Exception):
    """Base class for errors raised by the dialog engine."""


class ValidationError(PropbotError):
    """Client input is missing or unusable; nothing was mutated."""


class NotFoundError(PropbotError):
    """A session or property lookup came back empty."""


class ExternalServiceError(PropbotError):
    """Every LLM candidate failed, the credential was rejected, or the call timed out."""

    def __init__(self, message: str, *, last_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class GatewayNotConfiguredError(ExternalServiceError):
    """No API key or no candidate models; no call was attempted."""


class MalformedResponseError(PropbotError):
    """The LLM answered but its JSON payload could not be parsed."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class ServiceError(PropbotError):
    """A local persistence operation failed."""


class ConcurrentUpdateError(ServiceError):
    """The conversation was persisted by another exchange since it was loaded."""
