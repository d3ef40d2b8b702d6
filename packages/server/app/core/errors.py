"""
Domain errors.

Each one is an HTTPException so services can raise them directly and
FastAPI renders the status code and detail message.
"""

from __future__ import annotations

from fastapi import HTTPException


class ValidationError(HTTPException):
    """Malformed or missing input."""

    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=400, detail=detail)


class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=401, detail=detail)


class AuthorizationError(HTTPException):
    """Caller is not a member, or their role does not allow the action."""

    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=403, detail=detail)


class NotFoundError(HTTPException):
    """Entity is missing, soft-deleted, or (for invitations) no longer pending."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class ConflictError(HTTPException):
    """The change would break an invariant; nothing was modified."""

    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=409, detail=detail)
