from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import SplitResult, urlsplit

from webcam_gateway.core.exceptions import AppError

DEFAULT_SELECTOR = "img"

# Schemes that only make sense with an authority component.
_HOST_REQUIRED_SCHEMES = {"http", "https", "ws", "wss", "ftp"}
_DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_SELECTOR_RE = re.compile(r"^(?P<tag>[A-Za-z][A-Za-z0-9\-]*)(?:(?P<kind>[.#])(?P<name>[A-Za-z_\-][\w\-]*))?$")


@dataclass(frozen=True)
class Selector:
    """Parsed ``tag[.class|#id]`` selector."""

    tag: str
    class_name: str | None = None
    element_id: str | None = None

    def __str__(self) -> str:
        if self.class_name:
            return f"{self.tag}.{self.class_name}"
        if self.element_id:
            return f"{self.tag}#{self.element_id}"
        return self.tag

    def matches(self, tag: str, attrs: Mapping[str, str | None]) -> bool:
        if tag.lower() != self.tag:
            return False
        if self.class_name is not None:
            classes = (attrs.get("class") or "").split()
            return self.class_name in classes
        if self.element_id is not None:
            return attrs.get("id") == self.element_id
        return True


def require_param(params: Mapping[str, str], name: str) -> str:
    value = params.get(name)
    if not value:
        raise AppError.missing_param(name)
    return value


def parse_url(raw: str) -> SplitResult:
    candidate = raw.strip()
    try:
        parts = urlsplit(candidate)
        # Accessing the port validates it.
        parts.port
    except ValueError as exc:
        raise AppError.invalid_url() from exc

    if not parts.scheme or not _SCHEME_RE.match(parts.scheme):
        raise AppError.invalid_url()
    if parts.scheme.lower() in _HOST_REQUIRED_SCHEMES and not parts.hostname:
        raise AppError.invalid_url()
    if any(ch.isspace() for ch in parts.netloc):
        raise AppError.invalid_url()
    return parts


def parse_selector(raw: str | None) -> Selector:
    value = (raw or "").strip()
    if not value:
        return Selector(tag=DEFAULT_SELECTOR)
    match = _SELECTOR_RE.match(value)
    if match is None:
        raise AppError.invalid_selector(value)
    tag = match.group("tag").lower()
    kind = match.group("kind")
    name = match.group("name")
    if kind == ".":
        return Selector(tag=tag, class_name=name)
    if kind == "#":
        return Selector(tag=tag, element_id=name)
    return Selector(tag=tag)


def origin_of(url: SplitResult) -> str:
    host = url.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = url.port
    if port is not None and port != _DEFAULT_PORTS.get(url.scheme):
        return f"{url.scheme}://{host}:{port}"
    return f"{url.scheme}://{host}"
