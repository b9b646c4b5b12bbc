from __future__ import annotations

import logging
import os
from pathlib import Path

from archcopier.common.errors import ArchiveIOError
from archcopier.common.schema import Entry

log = logging.getLogger("archcopier.inventory")


def list_entries(directory: Path) -> list[Entry]:
    """
    Snapshot the regular files directly inside `directory`, oldest first.

    - Subdirectories are skipped; symlinks are followed for stat.
    - Equal mtimes keep the order the OS listed them in (sort is stable).
    - Any listing or stat failure fails the whole call.
    """
    entries: list[Entry] = []
    current = directory
    try:
        with os.scandir(directory) as it:
            for de in it:
                current = Path(de.path)
                if not de.is_file():
                    continue
                st = de.stat()
                entries.append(Entry(name=de.name, path=current, size=st.st_size, mtime=st.st_mtime))
    except OSError as e:
        raise ArchiveIOError("read", current, e) from e

    entries.sort(key=lambda e: e.mtime)
    log.debug("inventory: dir=%s files=%d", directory, len(entries))
    return entries
