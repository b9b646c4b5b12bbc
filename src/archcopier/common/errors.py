from __future__ import annotations

from pathlib import Path


class ArchCopierError(Exception):
    """Base class for every error the archiver reports to the user."""


class ValidationError(ArchCopierError):
    """Malformed arguments or configuration. Raised before anything is touched."""


class NotFoundError(ArchCopierError):
    def __init__(self, path: Path, reason: str = "not found") -> None:
        self.path = path
        super().__init__(f"source file {reason}: {path}")


class ArchiveIOError(ArchCopierError):
    """
    A directory read, stat, delete or copy failed.

    Deletions made before the failure are kept.
    """
    def __init__(self, action: str, path: Path, cause: OSError) -> None:
        self.action = action
        self.path = path
        self.cause = cause
        detail = cause.strerror or str(cause)
        super().__init__(f"cannot {action} {path}: {detail}")
