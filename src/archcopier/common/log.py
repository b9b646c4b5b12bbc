from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingCfg

_installed: list[logging.Handler] = []


def setup_logging(cfg: LoggingCfg, name: str) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.level))

    # a second call (tests, embedding) replaces our handlers instead of stacking them
    while _installed:
        h = _installed.pop()
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    root.addHandler(sh)
    _installed.append(sh)

    if cfg.dir is not None:
        cfg.dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            Path(cfg.dir) / f"{name}.log",
            maxBytes=cfg.max_bytes,
            backupCount=cfg.backups,
            encoding="utf-8",
        )
        fh.setFormatter(fmt)
        root.addHandler(fh)
        _installed.append(fh)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(name)
