from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import SplitResult

from webcam_gateway.core.exceptions import AppError

logger = logging.getLogger(__name__)


def parse_allowlist_extra(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(value.strip() for value in raw.split(",") if value.strip())


@dataclass(frozen=True)
class Allowlist:
    """Hostnames the gateway may contact. Built once, never mutated."""

    hosts: frozenset[str]

    @classmethod
    def from_hosts(cls, hosts) -> Allowlist:
        return cls(hosts=frozenset(str(host) for host in hosts))

    @classmethod
    def from_file(cls, path: str | Path) -> Allowlist:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
            raise ValueError(f"Allowlist at {path} must be a JSON array of hostnames")
        allowlist = cls.from_hosts(raw)
        logger.info("Loaded base allowlist path=%s hosts=%d", path, len(allowlist.hosts))
        return allowlist

    def permits(self, hostname: str | None, extra: str | None = None) -> bool:
        if not hostname:
            return False
        if hostname in self.hosts:
            return True
        return hostname in parse_allowlist_extra(extra)


def ensure_allowed_host(url: SplitResult, allowlist: Allowlist, extra: str | None = None) -> None:
    if not allowlist.permits(url.hostname, extra):
        logger.info("Rejected non-allowlisted host=%s", url.hostname)
        raise AppError.forbidden_host()
