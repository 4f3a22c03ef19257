# careerform/form_schema.py
from __future__ import annotations
import json
from enum import Enum
from typing import Any
from dataclasses import dataclass, field as dc_field

# ===================================================================
# 1. FIELD TYPES
# ===================================================================
# Stored forms carry the type as a plain string. Unknown strings are kept
# as-is on the FormField so newer forms still load; see FormField.kind.

class FieldType(Enum):
    TEXT = 'TEXT'
    EMAIL = 'EMAIL'
    PHONE = 'PHONE'
    TEXTAREA = 'TEXTAREA'
    SELECT = 'SELECT'
    RADIO = 'RADIO'
    CHECKBOX = 'CHECKBOX'
    TAGS = 'TAGS'
    SKILLS = 'SKILLS'
    FILE = 'FILE'
    DATE = 'DATE'
    NUMBER = 'NUMBER'
    URL = 'URL'
    PASSWORD = 'PASSWORD'
    COUNTRY_CODE = 'COUNTRY_CODE'
    PAGE_BREAK = 'PAGE_BREAK'

    @classmethod
    def parse(cls, raw: str | None) -> FieldType | None:
        """Maps a stored type string to a member, or None if unknown."""
        if not raw:
            return None
        value = raw.strip().upper()
        if value == 'TEL':
            return cls.PHONE
        try:
            return cls(value)
        except ValueError:
            return None

# Field kinds whose value is a list rather than a string.
LIST_VALUED_TYPES: frozenset[FieldType] = frozenset({
    FieldType.CHECKBOX, FieldType.TAGS, FieldType.SKILLS,
})

# ===================================================================
# 2. OPTION & LAYOUT HELPERS
# ===================================================================

def normalize_options(raw: str | None) -> list[str]:
    """
    Accepts both option encodings found in stored forms: a JSON array
    ('["A","B"]') and a comma separated string ('A, B'). Anything else is
    treated as a single option. Never raises.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, list):
            return [str(item) for item in parsed]
    except (ValueError, TypeError):
        pass
    if ',' in raw:
        return [part.strip() for part in raw.split(',') if part.strip()]
    return [raw]

_WIDTH_TO_COLS: dict[str, int] = {
    '25%': 3,
    '33%': 4,
    '50%': 6,
    '66%': 8,
    '75%': 9,
    '100%': 12,
}

def width_to_cols(width: str | None) -> int:
    """Maps a field width hint onto a 12-column grid span."""
    if not width:
        return 12
    return _WIDTH_TO_COLS.get(width.strip(), 12)

# ===================================================================
# 3. CORE DATA STRUCTURES
# ===================================================================

@dataclass(frozen=True)
class FormField:
    """One input definition, as configured in the form builder."""
    id: str
    field_type: str
    label: str
    field_name: str | None = None
    field_id: str | None = None
    placeholder: str | None = None
    options: str | None = None  # JSON array or comma separated
    is_required: bool = False
    order: int = 0
    field_width: str | None = None  # '25%' | '33%' | '50%' | '66%' | '75%' | '100%'
    css_class: str | None = None

    @property
    def kind(self) -> FieldType | None:
        return FieldType.parse(self.field_type)

    @property
    def key(self) -> str:
        """The ValueMap key: fieldId, then fieldName, then id."""
        return self.field_id or self.field_name or self.id

    @property
    def is_page_break(self) -> bool:
        return self.kind is FieldType.PAGE_BREAK

    @property
    def is_list_valued(self) -> bool:
        return self.kind in LIST_VALUED_TYPES

    @property
    def choices(self) -> list[str]:
        return normalize_options(self.options)

    @property
    def grid_span(self) -> int:
        return width_to_cols(self.field_width)

@dataclass
class Form:
    """A named, ordered collection of fields."""
    id: str
    name: str
    description: str | None = None
    fields: list[FormField] = dc_field(default_factory=list)
    is_default: bool = False

    def ordered_fields(self) -> list[FormField]:
        return sorted(self.fields, key=lambda f: f.order)

# ===================================================================
# 4. LOADING FROM STORED / JSON SHAPES
# ===================================================================

def _options_to_str(raw: Any) -> str | None:
    # Some callers hand over an already decoded list.
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        return json.dumps([str(item) for item in raw])
    return str(raw)

def field_from_dict(data: dict[str, Any]) -> FormField:
    """Builds a FormField from the camelCase shape used by the form API."""
    return FormField(
        id=str(data['id']),
        field_type=str(data.get('fieldType') or 'TEXT').upper(),
        label=str(data.get('label') or ''),
        field_name=data.get('fieldName') or None,
        field_id=data.get('fieldId') or None,
        placeholder=data.get('placeholder') or None,
        options=_options_to_str(data.get('options')),
        is_required=bool(data.get('isRequired', False)),
        order=int(data.get('order') or 0),
        field_width=data.get('fieldWidth') or None,
        css_class=data.get('cssClass') or None,
    )

def field_to_dict(f: FormField) -> dict[str, Any]:
    return {
        'id': f.id,
        'fieldType': f.field_type,
        'label': f.label,
        'fieldName': f.field_name,
        'fieldId': f.field_id,
        'placeholder': f.placeholder,
        'options': f.options,
        'isRequired': f.is_required,
        'order': f.order,
        'fieldWidth': f.field_width,
        'cssClass': f.css_class,
    }

def form_from_dict(data: dict[str, Any]) -> Form:
    return Form(
        id=str(data['id']),
        name=str(data.get('name') or ''),
        description=data.get('description') or None,
        fields=[field_from_dict(item) for item in data.get('fields') or []],
        is_default=bool(data.get('isDefault', False)),
    )
