"""Error types raised across the portview core.

Only ``ProtectedPackageError`` is meant to reach a user: the other kinds are
caught at the component that detects them, logged, and turned into a skip
(parse errors) or a no-op refresh (unavailable sources).
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    PARSE_ENTRY = "PARSE_ENTRY"
    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    PROTECTED_PACKAGE = "PROTECTED_PACKAGE"
    ATTRIBUTE_TYPE = "ATTRIBUTE_TYPE"
    UNKNOWN_PACKAGE = "UNKNOWN_PACKAGE"


class PortViewError(Exception):
    """Base error carrying a machine-readable code."""

    def __init__(self, code: ErrorCode, message: str, *, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable


class ParseEntryError(PortViewError):
    """A single index entry could not be parsed."""

    def __init__(self, message: str, *, name: str | None = None, offset: int = 0) -> None:
        super().__init__(ErrorCode.PARSE_ENTRY, message, recoverable=True)
        self.name = name
        self.offset = offset


class SourceUnavailableError(PortViewError):
    """An index file or the registry could not be read."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(ErrorCode.SOURCE_UNAVAILABLE, message, recoverable=True)
        self.source = source


class ProtectedPackageError(PortViewError):
    """An uninstall was requested for a built-in package."""

    def __init__(self, names: list[str]) -> None:
        joined = ", ".join(names)
        super().__init__(
            ErrorCode.PROTECTED_PACKAGE,
            f"Refusing to uninstall protected package(s): {joined}",
        )
        self.names = names


class AttributeTypeError(PortViewError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            ErrorCode.ATTRIBUTE_TYPE,
            f"Expected a {expected} attribute value, got {actual}",
        )
        self.expected = expected
        self.actual = actual


class UnknownPackageError(PortViewError):
    def __init__(self, name: str) -> None:
        super().__init__(ErrorCode.UNKNOWN_PACKAGE, f"Unknown package: {name!r}")
        self.name = name
