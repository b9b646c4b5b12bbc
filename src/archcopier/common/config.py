from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class LoggingCfg(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    dir: Path | None = None
    max_bytes: int = 5_000_000
    backups: int = 3


class NotifyCfg(BaseModel):
    url: str | None = None
    token: str | None = None
    timeout_s: float = Field(default=5.0, gt=0)


class AppCfg(BaseModel):
    logging: LoggingCfg = Field(default_factory=LoggingCfg)
    notify: NotifyCfg = Field(default_factory=NotifyCfg)


def load_config(path: Path | None) -> AppCfg:
    data: dict[str, Any] = {}
    if path is not None and path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValidationError(f"invalid config file {path}: {e}") from e
    try:
        return AppCfg.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"invalid config file {path}: {e.error_count()} error(s)") from e
