from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Entry:
    name: str
    path: Path
    size: int
    mtime: float


@dataclass(frozen=True)
class DiskUsage:
    free: int
    total: int

    @property
    def free_percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.free * 100.0 / self.total


class CountLimit(BaseModel):
    """Keep at most max_files files once the incoming file is added."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["count"] = "count"
    max_files: int = Field(gt=0)


class FreePercent(BaseModel):
    """Keep at least `percent` % of the target filesystem free."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["percent"] = "percent"
    percent: int = Field(ge=0, le=100)


class FreeMultiple(BaseModel):
    """Keep free space of at least `multiple` x the incoming file size."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple"] = "multiple"
    multiple: int = Field(gt=0)


Policy = Union[CountLimit, FreePercent, FreeMultiple]

DEFAULT_POLICY = FreePercent(percent=10)


class CopyJob(BaseModel):
    """
    One invocation of the archiver, fully resolved.

    NOTE:
    - policy defaults to FreePercent(10) when no policy flag is given.
    """
    model_config = ConfigDict(frozen=True)

    source: Path
    target: Path
    policy: Policy = Field(default=DEFAULT_POLICY, discriminator="kind")
    overwrite: bool = False


@dataclass(frozen=True)
class EnforcementResult:
    deleted: list[Entry] = field(default_factory=list)
    before: DiskUsage | None = None
    after: DiskUsage | None = None
    satisfied: bool = True

    @property
    def freed_bytes(self) -> int:
        return sum(e.size for e in self.deleted)


Outcome = Literal["success", "skipped", "failure"]


@dataclass(frozen=True)
class CopyResult:
    outcome: Outcome
    destination: Path
    enforcement: EnforcementResult | None = None
