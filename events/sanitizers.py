# events/sanitizers.py
"""
Input sanitization for registration payloads.

Free text from the registration wizard (team names, member names, form
answers) passes through these before being stored.
"""
import re
from typing import Optional

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
_TEAM_CODE = re.compile(r'^[A-Z0-9]+$')


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

    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = _CONTROL_CHARS.sub('', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_single_line(text: Optional[str], max_length: int = 255) -> str:
    """
    Sanitize names and titles.

    - No newlines
    - Collapsed whitespace
    """
    text = sanitize_text(text, max_length=max_length)
    text = re.sub(r'[\r\n]+', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text


def normalize_team_code(code: Optional[str]) -> str:
    """
    Team codes are shown uppercase but people type them however they like.
    Returns "" for anything that cannot be a code.
    """
    if not isinstance(code, str):
        return ""
    code = code.strip().upper()
    if not _TEAM_CODE.match(code):
        return ""
    return code
