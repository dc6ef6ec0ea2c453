import html
import re
from typing import Any, Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(CONTROL_CHARS.sub("", value), quote=True)


def sanitize_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Escape every string value of a flat mapping, e.g. email template parameters"""
    return {key: sanitize_string(value) if isinstance(value, str) else value for key, value in data.items()}
