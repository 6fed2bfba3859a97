"""Data normalization utilities for consistent data quality."""

import re
import unicodedata
from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email for matching and storage.

    - Strip whitespace
    - Lowercase
    """
    if not email:
        return None
    normalized = email.strip().lower()
    return normalized or None


def normalize_name(value: Optional[str]) -> Optional[str]:
    """Collapse internal whitespace and NFC-normalize a person name."""
    if value is None:
        return None
    cleaned = unicodedata.normalize("NFC", value)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned or None


def normalize_optional_text(value: Optional[str]) -> Optional[str]:
    """Trim free text; blank strings become None."""
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None
