from __future__ import annotations

from pydantic import BaseModel, Field

from webcam_gateway.core.exceptions import ErrorKind


class ErrorBody(BaseModel):
    code: ErrorKind = Field(description="Machine-readable failure kind.")
    message: str
    hint: str = Field(description="What the caller can do about it.")
