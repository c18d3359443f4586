# exceptions.py
from typing import Dict, Optional


class StoreError(Exception):
    """Base class for errors reported back to the API caller."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Input rejected before anything is written. Carries per-field messages."""

    status_code = 422

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message or next(iter(errors.values()), "Invalid data"))
        self.errors = errors


class NotFound(StoreError):
    status_code = 404

    def __init__(self, entity: str, identifier=None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class ConflictError(StoreError):
    """Delete blocked by dependent records."""

    status_code = 409
