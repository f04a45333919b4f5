"""Common response schemas."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every error response; ``detail`` is a string or an object."""

    detail: Any


class HealthResponse(BaseModel):
    ok: bool
