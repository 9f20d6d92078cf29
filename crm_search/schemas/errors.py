"""
schemas/errors.py — Structured error response model

Shared by the CrmSearchError and HTTPException handlers in main.py.
"""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    status_code: int
    request_id: str | None = None
