"""Request correlation helpers."""
from __future__ import annotations
import uuid
from typing import Mapping

from fastapi import Request

REQUEST_ID_HEADER = "X-Request-ID"

def ensure_request_id(headers: Mapping[str, str]) -> str:
    return headers.get(REQUEST_ID_HEADER, None) or str(uuid.uuid4())

def request_id_of(request: Request) -> str:
    """Request ID assigned by the context middleware, falling back to the raw header."""
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER, "unknown")

__all__ = ["ensure_request_id", "request_id_of", "REQUEST_ID_HEADER"]
