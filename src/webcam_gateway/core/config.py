from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_ALLOWLIST_PATH = Path(__file__).resolve().parents[1] / "data" / "allowlist.json"
SCANNER_KINDS = {"streaming", "buffered"}


@dataclass(frozen=True)
class Settings:
    allowlist_path: str
    allowlist_extra: str = ""
    api_prefix: str = "/api"
    request_timeout_seconds: float = 10.0
    max_image_bytes: int = 15 * 1024 * 1024
    max_page_bytes: int = 2 * 1024 * 1024
    html_scanner: str = "streaming"
    upstream_user_agent: str = "WebcamSun/1.0"
    image_cache_ttl_seconds: int = 30
    page_cache_ttl_seconds: int = 60


def _strip_wrapping_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_dotenv_if_present() -> None:
    env_paths = [
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[3] / ".env",
    ]
    for env_path in env_paths:
        if not env_path.exists():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = _strip_wrapping_quotes(value.strip())
            if key:
                os.environ.setdefault(key, value)
        break


def _normalize_prefix(raw: str) -> str:
    prefix = raw.strip().rstrip("/")
    if not prefix:
        return ""
    if not prefix.startswith("/"):
        prefix = f"/{prefix}"
    return prefix


def _resolve_scanner(raw: str) -> str:
    normalized = raw.strip().lower()
    if normalized in SCANNER_KINDS:
        return normalized
    return "streaming"


def get_settings() -> Settings:
    _load_dotenv_if_present()
    return Settings(
        allowlist_path=os.getenv("ALLOWLIST_PATH", str(DEFAULT_ALLOWLIST_PATH)),
        allowlist_extra=os.getenv("ALLOWLIST_EXTRA", ""),
        api_prefix=_normalize_prefix(os.getenv("API_PREFIX", "/api")),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10")),
        max_image_bytes=int(os.getenv("MAX_IMAGE_BYTES", str(15 * 1024 * 1024))),
        max_page_bytes=int(os.getenv("MAX_PAGE_BYTES", str(2 * 1024 * 1024))),
        html_scanner=_resolve_scanner(os.getenv("HTML_SCANNER", "streaming")),
        upstream_user_agent=os.getenv("UPSTREAM_USER_AGENT", "WebcamSun/1.0"),
    )


get_settings = lru_cache(maxsize=1)(get_settings)


def clear_settings_cache() -> None:
    get_settings.cache_clear()  # type: ignore[attr-defined]
