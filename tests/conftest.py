from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from archcopier.common.schema import DiskUsage, Outcome


class FakeDisk:
    """Filesystem of `total` bytes where everything outside `directory` uses `other_used`."""

    def __init__(self, directory: Path, total: int, other_used: int) -> None:
        self.directory = directory
        self.total = total
        self.other_used = other_used
        self.calls = 0

    def __call__(self, path: Path) -> DiskUsage:
        self.calls += 1
        used = self.other_used + sum(p.stat().st_size for p in self.directory.iterdir() if p.is_file())
        return DiskUsage(free=self.total - used, total=self.total)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[Outcome, str]] = []

    def notify(self, outcome: Outcome, message: str) -> None:
        self.sent.append((outcome, message))


MakeFiles = Callable[..., list[Path]]


@pytest.fixture
def make_files() -> MakeFiles:
    """Create F1..Fn in a directory with strictly increasing mtimes (F1 oldest)."""

    def _make(directory: Path, sizes: list[int], base_mtime: int = 1_600_000_000) -> list[Path]:
        directory.mkdir(parents=True, exist_ok=True)
        paths: list[Path] = []
        for i, size in enumerate(sizes, start=1):
            p = directory / f"F{i}.bin"
            p.write_bytes(b"x" * size)
            os.utime(p, (base_mtime + i * 60, base_mtime + i * 60))
            paths.append(p)
        return paths

    return _make


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fake_disk() -> Callable[[Path, int, int], FakeDisk]:
    return FakeDisk
