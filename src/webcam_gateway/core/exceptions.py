from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    MISSING_PARAM = "MISSING_PARAM"
    INVALID_URL = "INVALID_URL"
    INVALID_SELECTOR = "INVALID_SELECTOR"
    FORBIDDEN_HOST = "FORBIDDEN_HOST"
    NO_IMAGE_FOUND = "NO_IMAGE_FOUND"
    UPSTREAM_FAILED = "UPSTREAM_FAILED"


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.MISSING_PARAM: 400,
    ErrorKind.INVALID_URL: 400,
    ErrorKind.INVALID_SELECTOR: 400,
    ErrorKind.FORBIDDEN_HOST: 403,
    ErrorKind.NO_IMAGE_FOUND: 404,
    ErrorKind.UPSTREAM_FAILED: 502,
}

UPSTREAM_FAILED_MESSAGE = "Upstream fetch failed"
UPSTREAM_FAILED_HINT = "Try again or check provider availability."


class AppError(Exception):
    """A classified gateway failure carrying its HTTP status and a user-facing hint.

    Instances are built at the failure site and are read-only afterwards.
    """

    __slots__ = ("_code", "_message", "_hint")

    def __init__(self, code: ErrorKind, message: str, hint: str) -> None:
        super().__init__(code, message, hint)
        object.__setattr__(self, "_code", ErrorKind(code))
        object.__setattr__(self, "_message", message)
        object.__setattr__(self, "_hint", hint)

    def __setattr__(self, name: str, value: object) -> None:
        # Interpreter-managed attributes (__traceback__, __notes__) stay writable.
        if name.startswith("__"):
            super().__setattr__(name, value)
            return
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __str__(self) -> str:
        return self._message

    @property
    def code(self) -> ErrorKind:
        return self._code

    @property
    def http_status(self) -> int:
        return ERROR_STATUS[self._code]

    @property
    def message(self) -> str:
        return self._message

    @property
    def hint(self) -> str:
        return self._hint

    def __repr__(self) -> str:
        return f"AppError(code={self._code.value!r}, message={self._message!r})"

    @classmethod
    def missing_param(cls, name: str) -> AppError:
        return cls(ErrorKind.MISSING_PARAM, f"Missing {name}", f"Provide '{name}' as a query param.")

    @classmethod
    def invalid_url(cls) -> AppError:
        return cls(ErrorKind.INVALID_URL, "Invalid url", "Provide a valid absolute https URL.")

    @classmethod
    def invalid_selector(cls, selector: str) -> AppError:
        return cls(
            ErrorKind.INVALID_SELECTOR,
            f"Invalid selector: {selector}",
            "Use a tag name optionally followed by .class or #id, e.g. img.hero.",
        )

    @classmethod
    def forbidden_host(cls) -> AppError:
        return cls(ErrorKind.FORBIDDEN_HOST, "Forbidden host", "Host is not allowlisted.")

    @classmethod
    def no_image_found(cls) -> AppError:
        return cls(ErrorKind.NO_IMAGE_FOUND, "No image found", "Check selector or upstream page.")

    @classmethod
    def upstream_failed(cls, message: str = UPSTREAM_FAILED_MESSAGE) -> AppError:
        return cls(ErrorKind.UPSTREAM_FAILED, message, UPSTREAM_FAILED_HINT)
