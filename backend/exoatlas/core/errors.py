"""
Catalog error taxonomy.

Every failure raised by the service layer is a CatalogError subclass carrying
a machine-readable ``kind`` and the offending field or key, so the HTTP layer
can map it to a status code and callers can decide whether to retry.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for all catalog service failures."""

    kind = "catalog_error"
    status_code = 500

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message, **self.context}


class MissingInputError(CatalogError):
    """A required numeric input is absent. Not retryable."""

    kind = "missing_input"
    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required value: {field}", field=field)
        self.field = field


class InvalidInputError(MissingInputError):
    """A numeric input is present but outside its physical domain."""

    kind = "invalid_input"

    def __init__(self, field: str, value: Any):
        super().__init__(field, f"Invalid value for {field}: {value!r}")
        self.value = value


class NotFoundError(CatalogError):
    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, key: Any):
        super().__init__(f"{entity.capitalize()} not found", entity=entity, key=key)
        self.entity = entity
        self.key = key


class ConflictError(CatalogError):
    """Uniqueness violation. Safe to retry after reviewing current state."""

    kind = "conflict"
    status_code = 409


class StoreUnavailableError(CatalogError):
    """Transient store I/O failure; retried with backoff before surfacing."""

    kind = "store_unavailable"
    status_code = 503


class StoreError(CatalogError):
    """Non-transient store failure (bad statement, bad data, unsupported backend). Not retried."""

    kind = "store_error"
    status_code = 500
