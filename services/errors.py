"""
Domain errors raised by the service layer.

Routers do not translate these one by one; app.py maps each class to a
status code through a single exception handler.
"""
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class FieldError:
    """One violated field rule."""
    field: str
    message: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message}


class ServiceError(Exception):
    """Base class for expected, user-facing failures."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(ServiceError):
    """Draft violates one or more field or reference rules."""
    status_code = 422

    def __init__(self, errors: List[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = [e.to_dict() for e in self.errors]
        return body


class NotFound(ServiceError):
    """No row with that id."""
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[int] = None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class AccessDenied(ServiceError):
    """Row or target company lies outside the caller's tenant scope."""
    # Reported like NotFound so callers cannot discover other tenants' ids
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[int] = None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class DuplicateCode(ServiceError):
    """Business code already taken within its uniqueness scope."""
    status_code = 409

    def __init__(self, entity: str, code: str):
        super().__init__(f"{entity} code '{code}' already exists")
        self.entity = entity
        self.code = code


class UserAlreadyAssigned(ServiceError):
    """User account is already bound to another active teacher."""
    status_code = 409

    def __init__(self, user_id: int):
        super().__init__("Selected user is already assigned as a teacher")
        self.user_id = user_id


class Blocked(ServiceError):
    """Delete refused because dependent rows exist."""
    status_code = 409

    def __init__(self, entity: str, reasons: List[str]):
        super().__init__(f"Cannot delete {entity}: " + "; ".join(reasons))
        self.entity = entity
        self.reasons = list(reasons)

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["reasons"] = self.reasons
        return body
