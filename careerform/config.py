# careerform/config.py
from __future__ import annotations
import os
from pathlib import Path

# ===================================================================
# CENTRALIZED CONSTANTS (read once from the environment)
# ===================================================================

# Database and uploads live under DATA_DIR unless UPLOAD_DIR says otherwise.
DATA_DIR: Path = Path(os.environ.get('DATA_DIR', '.'))
DB_PATH: Path = DATA_DIR / "careers.db"
UPLOAD_DIR: Path = Path(os.environ.get('UPLOAD_DIR', str(DATA_DIR / 'uploads')))

PORT: int = int(os.environ.get('PORT', 8080))
STORAGE_SECRET: str = os.environ.get('STORAGE_SECRET', 'a_very_secure_secret_key_for_local_dev')

# Upper bound for the final submit call; a timeout is reported as retryable.
SUBMIT_TIMEOUT_SECONDS: float = float(os.environ.get('SUBMIT_TIMEOUT_SECONDS', 30))

MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
ALLOWED_UPLOAD_TYPES: tuple[str, ...] = (
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
)
ALLOWED_UPLOAD_EXTENSIONS: tuple[str, ...] = ('.pdf', '.doc', '.docx')

PORTFOLIO_LINKS_KEY: str = 'portfolioLinks'
PORTFOLIO_LINKS_LABEL: str = 'Portfolio Links'
