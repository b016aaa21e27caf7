# backend/errors.py
from __future__ import annotations
from typing import Optional

# PostgREST code for ".single()" matching zero rows; the sql provider reuses it
ROW_NOT_FOUND = "PGRST116"


class BackendError(Exception):
    """Any failed remote call. `message` is what the user sees in the toast."""

    def __init__(self, message: str, code: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.code == ROW_NOT_FOUND

    def __repr__(self) -> str:
        return f"BackendError({self.message!r}, code={self.code!r})"
