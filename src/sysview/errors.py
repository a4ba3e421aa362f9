"""Typed sampling errors for sysview."""

import time
from enum import Enum

import psutil


class ErrorKind(Enum):
    """Categories of failures a component can report."""

    ACCESS = "access"
    PERMISSION = "permission"
    TEMPORARY = "temporary"
    COLLECTION = "collection"
    PRESENTATION = "presentation"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ErrorKind.ACCESS: "System Access Error",
    ErrorKind.PERMISSION: "Permission Error",
    ErrorKind.TEMPORARY: "Temporary Error",
    ErrorKind.COLLECTION: "Data Collection Error",
    ErrorKind.PRESENTATION: "Render Error",
}

_PERMISSION_MARKERS = ("permission denied", "access denied", "operation not permitted")
_TEMPORARY_MARKERS = (
    "timeout",
    "timed out",
    "temporary",
    "try again",
    "resource temporarily unavailable",
)


class SampleError(Exception):
    """A failure to sample or present one component.

    Carries the error category, the component it belongs to and the
    underlying exception, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        component: str,
        message: str,
        original: BaseException | None = None,
        timestamp: float | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.component = component
        self.message = message
        self.original = original
        self.timestamp = time.time() if timestamp is None else timestamp

    def __str__(self) -> str:
        return f"[{self.component}] {self.kind.label}: {self.message}"

    def __repr__(self) -> str:
        return f"SampleError({self.kind.name}, {self.component!r}, {self.message!r})"

    @property
    def recoverable(self) -> bool:
        """Temporary and partial-collection errors are expected to clear on their own."""
        return self.kind in (ErrorKind.TEMPORARY, ErrorKind.COLLECTION)


def classify_error(
    exc: BaseException,
    component: str,
    message: str | None = None,
    default: ErrorKind = ErrorKind.ACCESS,
) -> SampleError:
    """Wrap an arbitrary exception in a SampleError of the right kind.

    Args:
        exc: The exception raised while sampling.
        component: Component name ("CPU", "Memory", ...).
        message: Human-readable message; defaults to str(exc).
        default: Kind used when the exception matches no known category.
    """
    if isinstance(exc, SampleError):
        return exc

    text = str(exc).lower()
    if isinstance(exc, (psutil.AccessDenied, PermissionError)) or any(
        marker in text for marker in _PERMISSION_MARKERS
    ):
        kind = ErrorKind.PERMISSION
    elif isinstance(exc, TimeoutError) or any(marker in text for marker in _TEMPORARY_MARKERS):
        kind = ErrorKind.TEMPORARY
    else:
        kind = default

    return SampleError(kind, component, message or str(exc) or type(exc).__name__, original=exc)
