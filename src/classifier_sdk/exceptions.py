"""Exception hierarchy for classifier-sdk.

All exceptions derive from ClassifierSdkError, enabling broad catch patterns
at the application boundary while allowing fine-grained handling internally.
"""

from __future__ import annotations

from typing import Any


class ClassifierSdkError(Exception):
    """Base exception for all classifier-sdk errors."""


class ConfigValidationError(ClassifierSdkError):
    """Configuration field validation failed."""


class SessionError(ClassifierSdkError):
    """Base class for streaming-session state errors."""


class SessionNotOpenError(SessionError):
    """A streaming submission was attempted before ``open()``.

    The client never opens a session implicitly; call ``open()`` first.
    """


class SessionAlreadyOpenError(SessionError):
    """``open()`` was called while a session is still active.

    Call ``close()`` before opening a new session.
    """


class SessionClosedError(SessionError):
    """The session closed while a write was still waiting for capacity."""


class TransportError(ClassifierSdkError):
    """A gRPC call or stream failed.

    Attributes:
        code: The gRPC status code reported by the transport, if any.
        details: The status details string, if any.
    """

    def __init__(self, message: str, code: Any = None, details: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.details = details


class AuthenticationError(ClassifierSdkError):
    """No authorization credential could be obtained.

    Raised by credential providers when discovery, token exchange, or
    refresh fails and no usable token remains.
    """


class PreparationError(ClassifierSdkError):
    """An image could not be turned into a classification payload."""


class ImageDimensionError(PreparationError):
    """The image does not match the service's required dimensions.

    Raised when resizing is disabled and the decoded image is not exactly
    the expected width and height.

    Attributes:
        width: Width of the supplied image in pixels.
        height: Height of the supplied image in pixels.
    """

    def __init__(self, message: str, width: int, height: int) -> None:
        super().__init__(message)
        self.width = width
        self.height = height
