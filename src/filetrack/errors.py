"""Filetrack Error System.

Every failure the snapshot store or diff engine can hit is reported as a
``TrackError`` carrying:
- A numeric error code for programmatic handling
- A user-friendly message
- Recovery hints shown by the CLI
- The underlying cause (usually an ``OSError``)
"""

from enum import IntEnum
from pathlib import Path
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Categories:
        5xxx - Configuration errors
        7xxx - Store/IO errors
    """

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5002

    # 7xxx - Store/IO Errors
    NOT_FOUND = 7001
    NO_TRACK_REPO = 7002
    STORE_UNAVAILABLE = 7003
    STORE_EXHAUSTED = 7004
    COPY_FAILED = 7005
    SLOT_TAKEN = 7006
    READ_FAILED = 7007

    @property
    def category(self) -> str:
        """Get the error category name."""
        return {5: "config", 7: "io"}.get(self.value // 1000, "unknown")

    @property
    def is_copy_failure(self) -> bool:
        """Whether the snapshot copy step failed (including a lost slot race)."""
        return self in (ErrorCode.COPY_FAILED, ErrorCode.SLOT_TAKEN)


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CONFIG_INVALID: "Invalid configuration in {path}: {detail}",
    ErrorCode.NOT_FOUND: "Not found: {path}{detail}",
    ErrorCode.NO_TRACK_REPO: "No track repository at {archive}",
    ErrorCode.STORE_UNAVAILABLE: "Cannot create track repository at {archive}: {detail}",
    ErrorCode.STORE_EXHAUSTED: "All {limit} snapshot slots for '{basename}' are used.",
    ErrorCode.COPY_FAILED: "Failed to copy {path} to {snapshot}: {detail}",
    ErrorCode.SLOT_TAKEN: "Snapshot {snapshot} was created by another writer.",
    ErrorCode.READ_FAILED: "Unable to read {path} as text: {detail}",
}


RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.NOT_FOUND: [
        "Check the file name and the current directory",
        "Commit the file first with 'filetrack {basename}'",
    ],
    ErrorCode.NO_TRACK_REPO: [
        "Commit a file to create the repository: 'filetrack <file>'",
    ],
    ErrorCode.STORE_UNAVAILABLE: [
        "Check write permissions on the current directory",
    ],
    ErrorCode.STORE_EXHAUSTED: [
        "Move old snapshots of '{basename}' out of {archive}",
    ],
    ErrorCode.SLOT_TAKEN: [
        "Retry the commit",
        "Enable 'lock: true' in .filetrack.yaml when committing from several processes",
    ],
    ErrorCode.READ_FAILED: [
        "Only UTF-8 text files can be diffed",
    ],
}


class TrackError(Exception):
    """Base error type for all filetrack errors.

    Example:
        >>> err = TrackError(ErrorCode.NO_TRACK_REPO, context={"archive": ".track"})
        >>> print(err)
        [FT-7002] No track repository at .track
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        formatted = []
        for hint in RECOVERY_HINTS.get(self.code, []):
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def category(self) -> str:
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'FT-7001')."""
        return f"FT-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"TrackError(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/JSON output."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recovery_hints": self.recovery_hints,
            "context": self.context,
        }


# Convenience factory functions


def not_found(path: Path | str, detail: str = "", basename: str = "") -> TrackError:
    """Create a NOT_FOUND error for a missing file or missing snapshots."""
    return TrackError(
        code=ErrorCode.NOT_FOUND,
        context={
            "path": str(path),
            "detail": f" ({detail})" if detail else "",
            "basename": basename or Path(path).name,
        },
    )


def store_error(
    code: ErrorCode,
    archive: Path | str,
    detail: str = "",
    cause: Exception | None = None,
    **extra: Any,
) -> TrackError:
    """Create an error about the archive directory itself."""
    return TrackError(
        code=code,
        context={"archive": str(archive), "detail": detail, **extra},
        cause=cause,
    )


def copy_error(
    code: ErrorCode,
    path: Path | str,
    snapshot: Path | str,
    cause: Exception | None = None,
) -> TrackError:
    """Create a COPY_FAILED or SLOT_TAKEN error."""
    return TrackError(
        code=code,
        context={
            "path": str(path),
            "snapshot": str(snapshot),
            "detail": str(cause) if cause else "",
        },
        cause=cause,
    )


def read_error(path: Path | str, cause: Exception) -> TrackError:
    """Create a READ_FAILED error carrying the I/O or decode cause."""
    return TrackError(
        code=ErrorCode.READ_FAILED,
        context={"path": str(path), "detail": str(cause)},
        cause=cause,
    )


def config_error(path: Path | str, detail: str, cause: Exception | None = None) -> TrackError:
    """Create a CONFIG_INVALID error."""
    return TrackError(
        code=ErrorCode.CONFIG_INVALID,
        context={"path": str(path), "detail": detail},
        cause=cause,
    )
