from __future__ import annotations

import logging
import shutil
import stat
from datetime import datetime
from pathlib import Path

from archcopier.alerting.notifier import LogNotifier, Notifier
from archcopier.archive.disk import UsageFn, disk_usage, human_bytes
from archcopier.archive.retention import apply_policy
from archcopier.common.errors import ArchCopierError, ArchiveIOError, NotFoundError
from archcopier.common.schema import CopyJob, CopyResult, DiskUsage, EnforcementResult, Outcome

log = logging.getLogger("archcopier.copier")

DATE_PREFIX_FMT = "%Y-%m-%d-%H-%M-%S"


def destination_name(source: Path, now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"{now.strftime(DATE_PREFIX_FMT)}-{source.name}"


def _fmt_usage(du: DiskUsage | None) -> str:
    if du is None:
        return "n/a"
    return f"{human_bytes(du.free)} free of {human_bytes(du.total)} ({du.free_percent:.1f}%)"


def summarize(job: CopyJob, name: str, res: EnforcementResult) -> str:
    return (
        f"archived {job.source.name} as {name} in {job.target}; "
        f"deleted {len(res.deleted)} file(s), freed {human_bytes(res.freed_bytes)}; "
        f"before: {_fmt_usage(res.before)}; after: {_fmt_usage(res.after)}"
    )


def _safe_notify(notifier: Notifier, outcome: Outcome, message: str) -> None:
    try:
        notifier.notify(outcome, message)
    except Exception as e:
        log.warning("notifier %s raised %s: %s", type(notifier).__name__, type(e).__name__, e)


def _check_source(source: Path) -> int:
    """Fail before any pruning if the source is missing or cannot be read."""
    try:
        st = source.stat()
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(source) from e
    except OSError as e:
        raise ArchiveIOError("stat", source, e) from e
    if not stat.S_ISREG(st.st_mode):
        raise NotFoundError(source, reason="is not a regular file")
    try:
        with source.open("rb") as f:
            f.read(1)
    except OSError as e:
        raise ArchiveIOError("read", source, e) from e
    return st.st_size


def archive_file(
    job: CopyJob,
    notifier: Notifier | None = None,
    usage: UsageFn = disk_usage,
    now: datetime | None = None,
) -> CopyResult:
    """
    Copy job.source into job.target under a timestamped name.

    The retention policy runs first, sized against the incoming file. If the
    destination name is taken and overwrite is off, nothing is deleted or copied.
    """
    notifier = notifier or LogNotifier()
    try:
        size = _check_source(job.source)

        try:
            job.target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError("create directory", job.target, e) from e

        name = destination_name(job.source, now)
        dest = job.target / name

        if dest.exists():
            if not job.overwrite:
                log.info("file %s already exists. Skipping.", name)
                _safe_notify(notifier, "skipped", f"{name} already exists in {job.target}")
                return CopyResult(outcome="skipped", destination=dest)
            log.info("file %s exists. Overwrite enabled.", name)

        res = apply_policy(job.target, job.policy, size, usage=usage)

        try:
            shutil.copyfile(job.source, dest)
        except OSError as e:
            # no partial archive may stay behind
            try:
                dest.unlink(missing_ok=True)
            except OSError as cleanup_err:
                log.warning("could not remove partial copy %s: %s", dest, cleanup_err)
            raise ArchiveIOError(f"copy {job.source} to", dest, e) from e
        log.info("copied as: %s", name)
    except ArchCopierError as e:
        _safe_notify(notifier, "failure", f"{job.source.name} -> {job.target}: {e}")
        raise

    _safe_notify(notifier, "success", summarize(job, name, res))
    return CopyResult(outcome="success", destination=dest, enforcement=res)
