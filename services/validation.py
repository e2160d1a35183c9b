"""
Field rule checks that collect every violation before failing.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

from email_validator import validate_email, EmailNotValidError

from services.errors import FieldError, ValidationError


def clean_str(value: Any) -> Optional[str]:
    """Strip strings; blank becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class FieldRules:
    """Accumulates FieldErrors for one draft."""

    def __init__(self):
        self.errors: List[FieldError] = []

    def add(self, field: str, message: str):
        self.errors.append(FieldError(field, message))

    def has_error(self, field: str) -> bool:
        return any(e.field == field for e in self.errors)

    def required(self, field: str, value: Any, label: str) -> bool:
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(field, f"{label} is required")
            return False
        return True

    def length(self, field: str, value: Optional[str], label: str,
               max_len: int, min_len: int = 0, required: bool = False):
        if value is None:
            if required:
                self.add(field, f"{label} is required")
            return
        if len(value) > max_len:
            self.add(field, f"{label} cannot exceed {max_len} characters")
        elif len(value) < min_len:
            if min_len == max_len:
                self.add(field, f"{label} must be exactly {min_len} characters")
            else:
                self.add(field, f"{label} must be between {min_len} and {max_len} characters")

    def int_range(self, field: str, value: Optional[int], label: str, low: int, high: int,
                  required: bool = False):
        if value is None:
            if required:
                self.add(field, f"{label} is required")
            return
        if value < low or value > high:
            self.add(field, f"{label} must be between {low} and {high}")

    def decimal_range(self, field: str, value: Any, label: str, low: Decimal, high: Decimal):
        if value is None:
            return
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            self.add(field, f"{label} must be a number")
            return
        if number < low or number > high:
            self.add(field, f"{label} must be between {low} and {high}")

    def email(self, field: str, value: Optional[str], label: str, max_len: int = 100):
        if value is None:
            return
        if len(value) > max_len:
            self.add(field, f"{label} cannot exceed {max_len} characters")
            return
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError:
            self.add(field, f"{label} is not a valid email address")

    def one_of(self, field: str, value: Optional[str], label: str, options: Iterable[str]):
        options = list(options)
        if value is not None and value not in options:
            self.add(field, f"{label} must be one of: {', '.join(options)}")

    def raise_if_any(self):
        if self.errors:
            raise ValidationError(self.errors)
