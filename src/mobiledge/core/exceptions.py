"""Exception taxonomy for mobiledge.

Every error raised by the services derives from MobileEdgeError and
carries an ErrorKind, which is also what sync outcomes report when a
single change fails.
"""

from enum import Enum


class ErrorKind(Enum):
    """Coarse error category exposed to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    EXPIRED = "expired"
    INTERNAL = "internal"


class MobileEdgeError(Exception):
    """Base class for all mobiledge errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MobileEdgeError):
    """Raised for unknown types and malformed or missing required input."""

    kind = ErrorKind.VALIDATION


class NotFoundError(MobileEdgeError):
    """Raised when a target entity or cached snapshot does not exist."""

    kind = ErrorKind.NOT_FOUND


class ExpiredResourceError(NotFoundError):
    """Raised when a resource exists but is past its expiry.

    Subclasses NotFoundError so callers handling "missing" also
    handle "expired".
    """

    kind = ErrorKind.EXPIRED


class ForbiddenError(MobileEdgeError):
    """Raised when a requester accesses another identity's resource."""

    kind = ErrorKind.FORBIDDEN


class CodeSpaceExhaustedError(MobileEdgeError):
    """Raised when no free short code was found within the retry cap."""

    kind = ErrorKind.INTERNAL
