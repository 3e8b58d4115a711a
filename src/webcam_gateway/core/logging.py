import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_LEVEL_NAMES = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

_CONFIGURED = False


def resolve_log_level(raw: str | None = None) -> int:
    value = (raw if raw is not None else os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    if value in _LEVEL_NAMES:
        return getattr(logging, value)
    return logging.INFO


def configure_logging() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = resolve_log_level()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("webcam_gateway").setLevel(level)
    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    # Outbound webcam fetches are logged by the upstream fetcher itself.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _CONFIGURED = True
