# eventhub-backend/events/sanitizers.py
"""
Input sanitization and validation for participant-supplied values.

All user-generated content should pass through these functions
before being stored or rendered.
"""
import re
from typing import Optional

import bleach

from .exceptions import ValidationError


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text)
    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def strip_html(text: Optional[str]) -> str:
    """Remove every HTML tag, keeping the text content."""
    if text is None:
        return ""
    return bleach.clean(text, tags=[], attributes={}, strip=True)


def sanitize_team_name(name: Optional[str]) -> str:
    """
    Team names: single line, no HTML, at most 100 characters, not empty.
    """
    text = strip_html(sanitize_text(name))
    text = re.sub(r'\s+', ' ', text).strip()
    text = text[:100]

    if not text:
        raise ValidationError("Team name is required", code="team_name_required")

    return text


def validate_int(value, label: str, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    """
    Coerce `value` to int and check it against optional bounds.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a valid integer", code="not_an_integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a valid integer", code="not_an_integer")

    if min_value is not None and number < min_value:
        raise ValidationError(f"{label} must be at least {min_value}", code="out_of_range")

    if max_value is not None and number > max_value:
        raise ValidationError(f"{label} cannot exceed {max_value}", code="out_of_range")

    return number
