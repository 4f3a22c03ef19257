# careerform/storage.py
from __future__ import annotations
import re
import json
import time
import uuid
import sqlite3
import logging
from pathlib import Path
from typing import Any
from dataclasses import dataclass
from datetime import datetime, timezone

from .config import (
    DB_PATH, UPLOAD_DIR, MAX_UPLOAD_BYTES,
    ALLOWED_UPLOAD_TYPES, ALLOWED_UPLOAD_EXTENSIONS,
)
from .form_schema import Form, FormField
from .submission import FileReference, SubmissionError, SubmissionPayload, UploadedFile

logger = logging.getLogger(__name__)

JOB_STATUS_ACTIVE: str = 'ACTIVE'
APPLICATION_STATUS_PENDING: str = 'PENDING'

# ===================================================================
# 1. DATABASE SETUP
# ===================================================================

def get_db_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn

def setup_database() -> None:
    logger.info(f"Setting up database at: {DB_PATH}")
    try:
        Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)
        with get_db_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS forms (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    is_default INTEGER NOT NULL DEFAULT 0
                );
                CREATE TABLE IF NOT EXISTS form_fields (
                    id TEXT PRIMARY KEY,
                    form_id TEXT NOT NULL REFERENCES forms(id) ON DELETE CASCADE,
                    field_type TEXT NOT NULL,
                    label TEXT NOT NULL,
                    field_name TEXT,
                    field_id TEXT,
                    placeholder TEXT,
                    options TEXT,
                    is_required INTEGER NOT NULL DEFAULT 0,
                    field_order INTEGER NOT NULL,
                    field_width TEXT,
                    css_class TEXT,
                    UNIQUE (form_id, field_order)
                );
                CREATE TABLE IF NOT EXISTS jobs (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    department TEXT,
                    location TEXT,
                    salary TEXT,
                    experience_level TEXT,
                    status TEXT NOT NULL DEFAULT 'ACTIVE',
                    form_id TEXT REFERENCES forms(id),
                    created_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS applications (
                    id TEXT PRIMARY KEY,
                    job_id TEXT NOT NULL REFERENCES jobs(id),
                    form_id TEXT,
                    candidate_name TEXT NOT NULL,
                    candidate_email TEXT,
                    candidate_phone TEXT,
                    resume TEXT,
                    resume_path TEXT,
                    cover_letter TEXT,
                    status TEXT NOT NULL,
                    form_data TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
            """)
            conn.commit()
        logger.info("Database setup successful.")
    except sqlite3.Error as e:
        logger.error(f"Database setup failed: {e}"); raise

def _new_id() -> str:
    return uuid.uuid4().hex

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

# ===================================================================
# 2. FORMS
# ===================================================================

def _field_from_row(row: sqlite3.Row) -> FormField:
    return FormField(
        id=row['id'],
        field_type=row['field_type'],
        label=row['label'],
        field_name=row['field_name'],
        field_id=row['field_id'],
        placeholder=row['placeholder'],
        options=row['options'],
        is_required=bool(row['is_required']),
        order=row['field_order'],
        field_width=row['field_width'],
        css_class=row['css_class'],
    )

def save_form(form: Form) -> str:
    """Inserts or replaces a form together with all of its fields."""
    with get_db_connection() as conn:
        if form.is_default:
            conn.execute("UPDATE forms SET is_default = 0 WHERE id != ?", (form.id,))
        conn.execute(
            "INSERT OR REPLACE INTO forms (id, name, description, is_default) VALUES (?, ?, ?, ?)",
            (form.id, form.name, form.description, int(form.is_default)),
        )
        conn.execute("DELETE FROM form_fields WHERE form_id = ?", (form.id,))
        conn.executemany(
            """INSERT INTO form_fields (id, form_id, field_type, label, field_name, field_id,
                   placeholder, options, is_required, field_order, field_width, css_class)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [
                (f.id, form.id, f.field_type, f.label, f.field_name, f.field_id,
                 f.placeholder, f.options, int(f.is_required), f.order, f.field_width, f.css_class)
                for f in form.fields
            ],
        )
        conn.commit()
    logger.info(f"Saved form '{form.name}' ({form.id}) with {len(form.fields)} fields.")
    return form.id

def _load_form(conn: sqlite3.Connection, form_row: sqlite3.Row) -> Form:
    field_rows = conn.execute(
        "SELECT * FROM form_fields WHERE form_id = ? ORDER BY field_order ASC", (form_row['id'],)
    ).fetchall()
    return Form(
        id=form_row['id'],
        name=form_row['name'],
        description=form_row['description'],
        fields=[_field_from_row(r) for r in field_rows],
        is_default=bool(form_row['is_default']),
    )

def get_form(form_id: str) -> Form | None:
    with get_db_connection() as conn:
        row = conn.execute("SELECT * FROM forms WHERE id = ?", (form_id,)).fetchone()
        return _load_form(conn, row) if row else None

def get_default_form() -> Form | None:
    with get_db_connection() as conn:
        row = conn.execute("SELECT * FROM forms WHERE is_default = 1 LIMIT 1").fetchone()
        return _load_form(conn, row) if row else None

# ===================================================================
# 3. JOBS
# ===================================================================

@dataclass
class Job:
    id: str
    title: str
    description: str
    status: str
    created_at: str
    department: str | None = None
    location: str | None = None
    salary: str | None = None
    experience_level: str | None = None
    form_id: str | None = None
    form: Form | None = None

def _job_from_row(row: sqlite3.Row) -> Job:
    return Job(
        id=row['id'],
        title=row['title'],
        description=row['description'],
        status=row['status'],
        created_at=row['created_at'],
        department=row['department'],
        location=row['location'],
        salary=row['salary'],
        experience_level=row['experience_level'],
        form_id=row['form_id'],
    )

def create_job(
    title: str,
    description: str = '',
    form_id: str | None = None,
    status: str = JOB_STATUS_ACTIVE,
    department: str | None = None,
    location: str | None = None,
    salary: str | None = None,
    experience_level: str | None = None,
) -> str:
    job_id = _new_id()
    with get_db_connection() as conn:
        conn.execute(
            """INSERT INTO jobs (id, title, description, department, location, salary,
                   experience_level, status, form_id, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (job_id, title, description, department, location, salary,
             experience_level, status, form_id, _now()),
        )
        conn.commit()
    logger.info(f"Created job '{title}' ({job_id}).")
    return job_id

def list_active_jobs() -> list[Job]:
    with get_db_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM jobs WHERE status = ? ORDER BY created_at DESC", (JOB_STATUS_ACTIVE,)
        ).fetchall()
    return [_job_from_row(r) for r in rows]

def get_public_job(job_id: str) -> Job | None:
    """An ACTIVE job with its form and ordered fields; hidden jobs return None."""
    with get_db_connection() as conn:
        row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        if not row or row['status'] != JOB_STATUS_ACTIVE:
            return None
        job = _job_from_row(row)
        if job.form_id:
            form_row = conn.execute("SELECT * FROM forms WHERE id = ?", (job.form_id,)).fetchone()
            if form_row:
                job.form = _load_form(conn, form_row)
    return job

# ===================================================================
# 4. APPLICATIONS (the submission endpoint)
# ===================================================================

def create_application(payload: SubmissionPayload) -> str:
    """Stores a labeled application. Raises SubmissionError when it must be rejected."""
    if not payload.job_id or not payload.form_data:
        raise SubmissionError("Missing required fields")

    with get_db_connection() as conn:
        job_row = conn.execute("SELECT id, status FROM jobs WHERE id = ?", (payload.job_id,)).fetchone()
        if not job_row:
            raise SubmissionError("Job not found")
        if job_row['status'] != JOB_STATUS_ACTIVE:
            raise SubmissionError("This job is no longer accepting applications")

        application_id = _new_id()
        cover_letter = payload.form_data.get('Cover Letter', '')
        conn.execute(
            """INSERT INTO applications (id, job_id, form_id, candidate_name, candidate_email,
                   candidate_phone, resume, resume_path, cover_letter, status, form_data, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (application_id, payload.job_id, payload.form_id, payload.candidate_name,
             payload.candidate_email, payload.candidate_phone, payload.resume_file_name,
             payload.resume_path, cover_letter if isinstance(cover_letter, str) else '',
             APPLICATION_STATUS_PENDING, json.dumps(payload.form_data), _now()),
        )
        conn.commit()
    logger.info(f"Stored application {application_id} for job '{payload.job_id}'.")
    return application_id

def list_applications(job_id: str | None = None) -> list[dict[str, Any]]:
    query = "SELECT * FROM applications"
    params: tuple[Any, ...] = ()
    if job_id:
        query += " WHERE job_id = ?"
        params = (job_id,)
    query += " ORDER BY created_at DESC"
    with get_db_connection() as conn:
        rows = conn.execute(query, params).fetchall()

    applications: list[dict[str, Any]] = []
    for row in rows:
        record = dict(row)
        try:
            record['form_data'] = json.loads(row['form_data'])
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt form_data on application {row['id']}: {e}")
            record['form_data'] = {}
        applications.append(record)
    return applications

# ===================================================================
# 5. FILE UPLOADS
# ===================================================================

_UNSAFE_NAME_CHARS = re.compile(r'[^a-zA-Z0-9.-]')

def save_upload(upload: UploadedFile) -> FileReference:
    """Stores a resume-style document under UPLOAD_DIR and returns its reference."""
    extension = Path(upload.name).suffix.lower()
    if upload.content_type not in ALLOWED_UPLOAD_TYPES and extension not in ALLOWED_UPLOAD_EXTENSIONS:
        logger.warning(f"Rejected upload '{upload.name}' of type {upload.content_type}.")
        raise SubmissionError("Invalid file type. Only PDF, DOC, and DOCX files are allowed.")
    if upload.size > MAX_UPLOAD_BYTES:
        logger.warning(f"Rejected upload '{upload.name}' of {upload.size} bytes.")
        raise SubmissionError(f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB.")

    upload_dir = Path(UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    file_name = f"{int(time.time() * 1000)}_{_UNSAFE_NAME_CHARS.sub('_', upload.name)}"
    (upload_dir / file_name).write_bytes(upload.content)
    logger.info(f"Stored upload '{upload.name}' as {file_name}.")
    return FileReference(file_name=file_name, original_name=upload.name, path=f"/uploads/{file_name}")

# ===================================================================
# 6. SAMPLE DATA
# ===================================================================

def _sample_form() -> Form:
    sample_fields: list[tuple[str, str, str, bool, str | None, str | None]] = [
        # (field type, label, field name, required, width, options)
        ('TEXT', 'Full Name', 'fullName', True, '50%', None),
        ('EMAIL', 'Email Address', 'email', True, '50%', None),
        ('COUNTRY_CODE', 'Country Code', 'countryCode', False, '25%', None),
        ('PHONE', 'Phone Number', 'phone', True, '75%', None),
        ('PAGE_BREAK', 'Experience', 'pageBreak1', False, None, None),
        ('SELECT', 'Experience Level', 'experienceLevel', True, '50%', '["Junior","Mid","Senior","Lead"]'),
        ('RADIO', 'Willing to Relocate', 'relocate', False, '50%', 'Yes, No'),
        ('SKILLS', 'Skills', 'skills', True, '100%', '["Python","SQL","Docker","Kubernetes","React"]'),
        ('CHECKBOX', 'Preferred Work Mode', 'workMode', False, '100%', '["Remote","Hybrid","On-site"]'),
        ('PAGE_BREAK', 'Documents', 'pageBreak2', False, None, None),
        ('FILE', 'Resume Upload', 'resume', True, '100%', None),
        ('URL', 'LinkedIn Profile', 'linkedin', False, '50%', None),
        ('TAGS', 'Portfolio Links', 'portfolioLinks', False, '50%', None),
        ('TEXTAREA', 'Cover Letter', 'coverLetter', False, '100%', None),
    ]
    form_id = _new_id()
    fields = [
        FormField(
            id=_new_id(), field_type=field_type, label=label, field_name=field_name,
            is_required=is_required, order=index, field_width=width, options=options,
        )
        for index, (field_type, label, field_name, is_required, width, options) in enumerate(sample_fields)
    ]
    return Form(id=form_id, name='Standard Application', description='Default multi-step application form.',
                fields=fields, is_default=True)

def seed_sample_data() -> None:
    """Creates a default form and one open position on an empty database."""
    with get_db_connection() as conn:
        job_count = conn.execute("SELECT COUNT(*) FROM jobs").fetchone()[0]
    if job_count:
        return
    form = get_default_form() or _sample_form()
    save_form(form)
    create_job(
        title='Backend Engineer',
        description='Build and run the services behind our careers platform.',
        form_id=form.id,
        department='Engineering',
        location='Remote',
        experience_level='Mid',
    )
    logger.info("Seeded sample form and job.")
