# utils/errors.py
from __future__ import annotations


class ViewRedirect(Exception):
    """Raised by the guard; answered with 303 + Location."""

    def __init__(self, target: str):
        super().__init__(target)
        self.target = target


class FieldError(ValueError):
    """Inline form error for one field, answered with 422."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class FileTypeNotAllowed(FieldError):
    def __init__(self, filename: str, allowed: list[str]):
        super().__init__("file", f"'{filename}' is not an allowed file type ({', '.join(allowed)})")
        self.allowed = allowed


class Forbidden(Exception):
    def __init__(self, message: str = "You do not have permission to do that"):
        super().__init__(message)
        self.message = message
