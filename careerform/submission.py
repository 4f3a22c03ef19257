# careerform/submission.py
from __future__ import annotations
from typing import Any
from dataclasses import dataclass, field as dc_field
from collections.abc import Iterable

from .config import PORTFOLIO_LINKS_KEY, PORTFOLIO_LINKS_LABEL
from .form_schema import FormField

DEFAULT_CANDIDATE_NAME: str = 'Anonymous'
RESUME_LABEL_HINTS: tuple[str, ...] = ('resume', 'cv', 'upload')

class SubmissionError(Exception):
    """The submit endpoint (or the upload before it) rejected the application."""

# ===================================================================
# 1. FILE HANDLES
# ===================================================================

@dataclass(frozen=True)
class UploadedFile:
    """A file the applicant picked, not stored anywhere yet."""
    name: str
    content: bytes
    content_type: str = 'application/octet-stream'

    @property
    def size(self) -> int:
        return len(self.content)

@dataclass(frozen=True)
class FileReference:
    """A file already stored by the upload collaborator."""
    file_name: str
    original_name: str
    path: str

    def to_dict(self) -> dict[str, str]:
        return {'fileName': self.file_name, 'originalName': self.original_name, 'path': self.path}

# ===================================================================
# 2. LABELED SUBMISSION
# ===================================================================

@dataclass
class LabeledSubmission:
    form_data: dict[str, Any] = dc_field(default_factory=dict)
    candidate_name: str = DEFAULT_CANDIDATE_NAME
    candidate_email: str = ''
    candidate_phone: str = ''
    resume_file_name: str = ''
    resume_path: str = ''

@dataclass
class SubmissionPayload:
    """What gets handed to the submission endpoint."""
    job_id: str
    form_id: str
    form_data: dict[str, Any]
    candidate_name: str = DEFAULT_CANDIDATE_NAME
    candidate_email: str = ''
    candidate_phone: str = ''
    resume_file_name: str = ''
    resume_path: str = ''

    @classmethod
    def from_labeled(cls, job_id: str, form_id: str, labeled: LabeledSubmission) -> SubmissionPayload:
        return cls(
            job_id=job_id,
            form_id=form_id,
            form_data=labeled.form_data,
            candidate_name=labeled.candidate_name,
            candidate_email=labeled.candidate_email,
            candidate_phone=labeled.candidate_phone,
            resume_file_name=labeled.resume_file_name,
            resume_path=labeled.resume_path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'jobId': self.job_id,
            'formId': self.form_id,
            'formData': self.form_data,
            'candidateName': self.candidate_name,
            'candidateEmail': self.candidate_email,
            'candidatePhone': self.candidate_phone,
            'resume': self.resume_file_name,
            'resumePath': self.resume_path,
        }

# ===================================================================
# 3. THE TRANSFORMER
# ===================================================================

def _label_lookup(fields: Iterable[FormField]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for f in fields:
        lookup.setdefault(f.id, f.label)
        lookup[f.key] = f.label
    return lookup

def _serialize_value(value: Any) -> Any:
    if isinstance(value, FileReference):
        return value.to_dict()
    if isinstance(value, UploadedFile):
        # Should have been uploaded already; keep the name rather than the bytes.
        return {'fileName': '', 'originalName': value.name, 'path': ''}
    return value

def _is_file_record(value: Any) -> bool:
    return isinstance(value, dict) and 'fileName' in value and 'path' in value

def to_labeled_submission(
    values: dict[str, Any],
    fields: Iterable[FormField],
    field_labels: dict[str, str] | None = None,
) -> LabeledSubmission:
    """
    Re-keys a ValueMap by field label and derives the candidate's name,
    email and phone from the labeled entries.

    The candidate detection is a best-effort scan of label text and value
    shape (first match wins per attribute). A label such as
    "Emergency Contact Name" will be read as the candidate's name.
    """
    lookup = _label_lookup(fields)
    extra_labels = field_labels or {}
    result = LabeledSubmission()

    for identifier, value in values.items():
        if identifier == PORTFOLIO_LINKS_KEY:
            label = PORTFOLIO_LINKS_LABEL
        else:
            label = lookup.get(identifier) or extra_labels.get(identifier) or identifier
        result.form_data[label] = _serialize_value(value)

    name_found = email_found = phone_found = False
    for label, value in result.form_data.items():
        lower_label = label.lower()
        if _is_file_record(value):
            if not result.resume_path and any(h in lower_label for h in RESUME_LABEL_HINTS):
                result.resume_file_name = value['fileName']
                result.resume_path = value['path']
            continue
        if not isinstance(value, str) or not value.strip():
            continue
        if 'name' in lower_label and not name_found:
            result.candidate_name = value
            name_found = True
        elif ('email' in lower_label or '@' in value) and not email_found:
            result.candidate_email = value
            email_found = True
        elif any(h in lower_label for h in ('phone', 'mobile', 'contact')) and not phone_found:
            result.candidate_phone = value
            phone_found = True

    return result
