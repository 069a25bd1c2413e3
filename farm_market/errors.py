"""Service-level error taxonomy.

Services raise these; ``main.py`` renders them as ``{success, code, message}``
with the matching HTTP status. Endpoints never translate them by hand.
"""
from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    code: str = "INTERNAL"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(ServiceError):
    code = "VALIDATION"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class InternalError(ServiceError):
    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


__all__ = ["ServiceError", "ValidationError", "NotFoundError", "ConflictError", "InternalError"]
