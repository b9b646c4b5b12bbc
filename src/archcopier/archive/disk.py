from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable

from archcopier.common.errors import ArchiveIOError
from archcopier.common.schema import DiskUsage

UsageFn = Callable[[Path], DiskUsage]


def disk_usage(path: Path) -> DiskUsage:
    try:
        du = shutil.disk_usage(path.resolve())
    except OSError as e:
        raise ArchiveIOError("query disk usage of", path, e) from e
    return DiskUsage(free=du.free, total=du.total)


def human_bytes(n: float) -> str:
    if abs(n) < 1024:
        return f"{n:.0f} B"
    for unit in ("KiB", "MiB", "GiB"):
        n /= 1024
        if abs(n) < 1024:
            return f"{n:.1f} {unit}"
    return f"{n / 1024:.1f} TiB"
