# careerform/validation.py
from __future__ import annotations
import logging
from typing import Any
from collections.abc import Callable, Iterable

from .form_schema import FieldType, FormField
from .skills import all_skills_rated

logger = logging.getLogger(__name__)

# --- Type Aliases ---
ValidationResult = tuple[bool, str]
# A validator gets the value and the whole ValueMap for context
ValidatorFunc = Callable[[Any | None, dict[str, Any]], ValidationResult]

def is_empty(value: Any | None) -> bool:
    """None, a blank string and an empty list all count as 'not filled in'."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple, dict)) and not value:
        return True
    return False

# ===================================================================
# GENERIC VALIDATOR GENERATORS
# ===================================================================

def required(message: str = "This field is required.") -> ValidatorFunc:
    """Ensures a value is not None, not blank, and not an empty list."""
    def validator(value: Any | None, values: dict[str, Any]) -> ValidationResult:
        if is_empty(value):
            return False, message
        return True, ""
    return validator

def skills_rated(message: str = "Please rate all skills before submitting the application.") -> ValidatorFunc:
    """Blocks while any selected skill is still unrated."""
    def validator(value: Any | None, values: dict[str, Any]) -> ValidationResult:
        if not all_skills_rated(value):
            return False, message
        return True, ""
    return validator

# ===================================================================
# STEP VALIDATION
# ===================================================================

def validators_for(f: FormField) -> list[ValidatorFunc]:
    """The validators a field gets from its configuration."""
    validators: list[ValidatorFunc] = []
    if f.is_page_break:
        return validators
    if f.is_required:
        validators.append(required(f"{f.label} is required"))
    if f.kind is FieldType.SKILLS:
        validators.append(skills_rated(f"Please rate all skills for {f.label}"))
    return validators

def validate_fields(fields: Iterable[FormField], values: dict[str, Any]) -> str | None:
    """
    Runs each field's validators in order and returns the first failure
    message, or None when everything passes. Fail-fast: only one problem is
    reported at a time.
    """
    for f in fields:
        value = values.get(f.key)
        for validator_func in validators_for(f):
            is_valid, msg = validator_func(value, values)
            if not is_valid:
                logger.debug(f"Validation failed for field '{f.key}': {msg}")
                return msg
    return None
