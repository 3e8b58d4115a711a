from webcam_gateway.core.config import Settings, clear_settings_cache, get_settings
from webcam_gateway.core.exceptions import ERROR_STATUS, AppError, ErrorKind
from webcam_gateway.core.logging import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "AppError",
    "ErrorKind",
    "ERROR_STATUS",
    "configure_logging",
]
