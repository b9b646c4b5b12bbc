from __future__ import annotations

import logging
import socket
from datetime import datetime, timezone
from typing import Protocol

import httpx

from archcopier.common.config import NotifyCfg
from archcopier.common.schema import Outcome

log = logging.getLogger("archcopier.alerting")


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class Notifier(Protocol):
    def notify(self, outcome: Outcome, message: str) -> None: ...


class LogNotifier:
    def notify(self, outcome: Outcome, message: str) -> None:
        level = logging.ERROR if outcome == "failure" else logging.INFO
        log.log(level, "[%s] %s", outcome.upper(), message)


class WebhookNotifier:
    """
    POSTs {ts, host, outcome, message} as JSON to a webhook.

    Best effort: every failure (network, timeout, HTTP status) is logged and
    dropped, so a broken endpoint never fails an archive run.
    """
    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout_s: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.token = token
        self.timeout_s = timeout_s
        self._client = client

    def _post(self, client: httpx.Client, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return client.post(self.url, json=payload, headers=headers, timeout=self.timeout_s)

    def notify(self, outcome: Outcome, message: str) -> None:
        payload = {
            "ts": _now_rfc3339(),
            "host": socket.gethostname(),
            "outcome": outcome,
            "message": message,
        }
        try:
            if self._client is not None:
                r = self._post(self._client, payload)
            else:
                with httpx.Client() as client:
                    r = self._post(client, payload)
            if r.status_code >= 400:
                log.warning("notify failed status=%s body=%s", r.status_code, r.text[:500])
        except Exception as e:
            log.warning("notify exception: %s: %s", type(e).__name__, e)


def build_notifier(cfg: NotifyCfg) -> Notifier:
    if cfg.url:
        return WebhookNotifier(cfg.url, token=cfg.token, timeout_s=cfg.timeout_s)
    return LogNotifier()
