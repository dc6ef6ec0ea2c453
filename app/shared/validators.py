"""Shared validation utilities for booking and registration forms"""

import re
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
GROUP_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
NOTES_MAX_LENGTH = 500


def validate_email(email: Optional[str]) -> str:
    """
    Validate email format.

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email is missing or malformed
    """
    if not email or not email.strip():
        raise ValueError("Email is required")

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email address")

    return email


def validate_name(name: Optional[str]) -> str:
    """Names need two characters and only letters, spaces, hyphens and apostrophes"""
    if not name or not name.strip():
        raise ValueError("Name is required")

    name = name.strip()
    if len(name) < 2:
        raise ValueError("Name must be at least 2 characters")
    if not NAME_PATTERN.match(name):
        raise ValueError("Name contains invalid characters")

    return name


def validate_group_id(group_id: Optional[str]) -> Optional[str]:
    # Optional
    if not group_id or not group_id.strip():
        return None

    group_id = group_id.strip()
    if not GROUP_ID_PATTERN.match(group_id):
        raise ValueError("Group ID contains invalid characters")

    return group_id


def validate_notes(notes: Optional[str]) -> Optional[str]:
    # Optional
    if not notes or not notes.strip():
        return None

    if len(notes) > NOTES_MAX_LENGTH:
        raise ValueError(f"Notes must be less than {NOTES_MAX_LENGTH} characters")

    return notes.strip()
