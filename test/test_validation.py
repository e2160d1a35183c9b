from decimal import Decimal

import pytest

from services.errors import ValidationError
from services.validation import FieldRules, clean_str


def test_clean_str():
    assert clean_str("  abc ") == "abc"
    assert clean_str("   ") is None
    assert clean_str(None) is None


def test_rules_collect_every_violation():
    rules = FieldRules()
    rules.required("company_id", None, "Company")
    rules.length("code", "X", "Site code", 10, 2, required=True)
    rules.length("name", None, "Site name", 100, required=True)
    rules.email("email", "not-an-email", "Email")
    rules.int_range("sort_order", 0, "Sort order", 1, 100)
    rules.decimal_range("hourly_rate", Decimal("-1"), "Hourly rate", Decimal("0"), Decimal("10"))

    with pytest.raises(ValidationError) as excinfo:
        rules.raise_if_any()

    fields = [e.field for e in excinfo.value.errors]
    assert fields == ["company_id", "code", "name", "email", "sort_order", "hourly_rate"]
    assert excinfo.value.status_code == 422


def test_length_messages():
    rules = FieldRules()
    rules.length("gender", "MF", "Gender", 1)
    rules.length("code", "AB", "Code", 5, 5)
    assert rules.errors[0].message == "Gender cannot exceed 1 characters"
    assert rules.errors[1].message == "Code must be exactly 5 characters"


def test_valid_values_pass():
    rules = FieldRules()
    rules.length("code", "HO", "Company code", 10, 2, required=True)
    rules.email("email", "office@example.com", "Email")
    rules.one_of("status", "Active", "Status", ["Pending", "Active"])
    rules.int_range("duration", None, "Duration", 1, 104)
    rules.raise_if_any()
    assert rules.errors == []


def test_one_of_lists_options():
    rules = FieldRules()
    rules.one_of("status", "Lost", "Status", ["Pending", "Active"])
    assert rules.errors[0].message == "Status must be one of: Pending, Active"


def test_validation_error_body():
    rules = FieldRules()
    rules.add("code", "Code is required")
    with pytest.raises(ValidationError) as excinfo:
        rules.raise_if_any()
    assert excinfo.value.to_dict() == {
        "success": False,
        "message": "Validation failed",
        "errors": [{"field": "code", "message": "Code is required"}],
    }
