from __future__ import annotations

import logging
from collections import deque
from pathlib import Path

from archcopier.archive.disk import UsageFn, disk_usage, human_bytes
from archcopier.archive.inventory import list_entries
from archcopier.common.errors import ArchiveIOError
from archcopier.common.schema import (
    CountLimit,
    EnforcementResult,
    Entry,
    FreeMultiple,
    FreePercent,
    Policy,
)

log = logging.getLogger("archcopier.retention")


def _delete(entry: Entry, reason: str) -> None:
    try:
        entry.path.unlink()
    except OSError as e:
        raise ArchiveIOError("delete", entry.path, e) from e
    log.info("deleted %s (%s)", entry.name, reason)


def enforce_count_limit(directory: Path, max_files: int, usage: UsageFn = disk_usage) -> EnforcementResult:
    """
    Make room for one more file under a count limit.

    Leaves at most max_files - 1 files behind, removing the oldest first.
    A failed delete raises ArchiveIOError; earlier deletes are not undone.
    """
    if max_files < 1:
        raise ValueError(f"max_files must be positive, got {max_files}")

    before = usage(directory)
    entries = list_entries(directory)
    excess = len(entries) - (max_files - 1)
    if excess <= 0:
        return EnforcementResult(before=before, after=before)

    deleted: list[Entry] = []
    for entry in entries[:excess]:
        _delete(entry, f"count limit {max_files}")
        deleted.append(entry)

    return EnforcementResult(deleted=deleted, before=before, after=usage(directory))


def enforce_free_space(directory: Path, required_free: int, usage: UsageFn = disk_usage) -> EnforcementResult:
    """
    Delete oldest files until the filesystem should have `required_free` bytes free.

    Free space is tracked by adding each deleted file's size to the first reading
    instead of asking the OS again after every unlink. The real usage is read once
    more at the end for reporting. Running out of files is not an error.
    """
    before = usage(directory)
    if before.free >= required_free:
        return EnforcementResult(before=before, after=before)

    pending = deque(list_entries(directory))
    free = before.free
    deleted: list[Entry] = []

    while free < required_free and pending:
        oldest = pending.popleft()
        _delete(oldest, "low disk space")
        deleted.append(oldest)
        free += oldest.size

    satisfied = free >= required_free
    if not satisfied:
        log.warning(
            "no files left to delete in %s: need %s free, expect %s",
            directory,
            human_bytes(required_free),
            human_bytes(free),
        )

    return EnforcementResult(deleted=deleted, before=before, after=usage(directory), satisfied=satisfied)


def required_free_bytes(policy: FreePercent | FreeMultiple, total_bytes: int, incoming_size: int) -> int:
    if isinstance(policy, FreePercent):
        return total_bytes * policy.percent // 100
    if isinstance(policy, FreeMultiple):
        return incoming_size * policy.multiple
    raise TypeError(f"no free-space requirement for policy {policy!r}")


def apply_policy(
    directory: Path,
    policy: Policy,
    incoming_size: int,
    usage: UsageFn = disk_usage,
) -> EnforcementResult:
    if isinstance(policy, CountLimit):
        return enforce_count_limit(directory, policy.max_files, usage=usage)

    total = usage(directory).total if isinstance(policy, FreePercent) else 0
    required = required_free_bytes(policy, total, incoming_size)
    log.debug("policy=%s required_free=%d", policy.kind, required)
    return enforce_free_space(directory, required, usage=usage)
