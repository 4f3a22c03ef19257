# tests/test_validation.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

# This is a standard way to make the `careerform` directory importable
# without having to install the project in editable mode.
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from careerform.form_schema import FormField
from careerform.validation import (
    required,
    skills_rated,
    is_empty,
    validate_fields,
    validators_for,
)

# Validators get the whole ValueMap for context; most tests don't need it.
FORM_DATA: dict[str, Any] = {}

def test_required_validator() -> None:
    """Tests the `required` validator for various empty/non-empty cases."""
    validator = required("This field is required.")

    # --- Failing Cases ---
    is_valid_none, _ = validator(None, FORM_DATA)
    assert not is_valid_none, "Should fail for None"

    is_valid_empty_str, _ = validator("", FORM_DATA)
    assert not is_valid_empty_str, "Should fail for empty string"

    is_valid_whitespace, _ = validator("   ", FORM_DATA)
    assert not is_valid_whitespace, "Should fail for whitespace-only string"

    is_valid_empty_list, msg = validator([], FORM_DATA)
    assert not is_valid_empty_list, "Should fail for an empty list"
    assert msg == "This field is required."

    # --- Passing Cases ---
    is_valid_str, _ = validator("hello", FORM_DATA)
    assert is_valid_str, "Should pass for a non-empty string"

    is_valid_list, _ = validator(["Remote"], FORM_DATA)
    assert is_valid_list, "Should pass for a non-empty list"

def test_is_empty() -> None:
    assert is_empty(None)
    assert is_empty("  ")
    assert is_empty([])
    assert not is_empty("x")
    assert not is_empty(0), "Zero is a value, not a missing answer"

def test_validators_follow_field_config() -> None:
    """Only `isRequired` and the SKILLS kind add validators; values are not format-checked."""
    assert len(validators_for(FormField(id='1', field_type='TEXT', label='A', is_required=True))) == 1
    assert validators_for(FormField(id='2', field_type='EMAIL', label='E')) == []
    assert len(validators_for(FormField(id='3', field_type='SKILLS', label='S', is_required=True))) == 2
    assert validators_for(FormField(id='4', field_type='PAGE_BREAK', label='P', is_required=True)) == []

def test_any_non_empty_phone_passes() -> None:
    phone = FormField(id='p', field_type='PHONE', label='Phone', field_name='phone', is_required=True)
    assert validate_fields([phone], {'phone': '12345'}) is None
    assert validate_fields([phone], {'phone': '  '}) == "Phone is required"

def test_skills_rated_validator() -> None:
    validator = skills_rated("Rate them all")
    assert validator([], FORM_DATA)[0], "No skills selected means nothing to rate"
    assert validator([{'skill': 'Python', 'rating': 3}], FORM_DATA)[0]

    is_valid, msg = validator([{'skill': 'Python', 'rating': 3}, {'skill': 'SQL', 'rating': 0}], FORM_DATA)
    assert not is_valid, "Should fail while any skill is unrated"
    assert msg == "Rate them all"

def test_validate_fields_is_fail_fast() -> None:
    """Only the first failing field is reported, in field order."""
    fields = [
        FormField(id='1', field_type='TEXT', label='Full Name', field_name='fullName', is_required=True),
        FormField(id='2', field_type='EMAIL', label='Email', field_name='email', is_required=True),
    ]
    assert validate_fields(fields, {}) == "Full Name is required"
    assert validate_fields(fields, {'fullName': 'Ada'}) == "Email is required"
    assert validate_fields(fields, {'fullName': 'Ada', 'email': 'ada@example.com'}) is None

def test_validate_fields_skills_gate() -> None:
    """An unrated skill blocks even when the field is optional."""
    skills = FormField(id='s', field_type='SKILLS', label='Skills', field_name='skills')
    assert validate_fields([skills], {}) is None
    assert validate_fields([skills], {'skills': [{'skill': 'SQL', 'rating': 0}]}) == \
        "Please rate all skills for Skills"

def test_optional_fields_and_page_breaks_never_block() -> None:
    fields = [
        FormField(id='1', field_type='TEXT', label='Nickname'),
        FormField(id='2', field_type='PAGE_BREAK', label='Break', is_required=True),
    ]
    assert validate_fields(fields, {}) is None
