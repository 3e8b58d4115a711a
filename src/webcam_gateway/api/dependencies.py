from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from webcam_gateway.core.config import Settings, get_settings
from webcam_gateway.services import Allowlist, WebcamGateway, build_gateway


@lru_cache(maxsize=1)
def _cached_allowlist(path: str) -> Allowlist:
    return Allowlist.from_file(path)


@lru_cache(maxsize=1)
def _cached_gateway(settings: Settings) -> WebcamGateway:
    return build_gateway(settings, allowlist=_cached_allowlist(settings.allowlist_path))


def get_gateway(settings: Settings = Depends(get_settings)) -> WebcamGateway:
    return _cached_gateway(settings)


def clear_dependency_caches() -> None:
    _cached_allowlist.cache_clear()
    _cached_gateway.cache_clear()
