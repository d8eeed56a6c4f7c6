"""
Credential guard — API key validation, masking and error-text redaction.

Pure functions; safe to call from any logging path.
"""

import re
from typing import Any

API_KEY_PREFIX = "apk_"
MIN_API_KEY_LENGTH = 32

MASK = "***"
MASK_MIN_LENGTH = 8
MASK_VISIBLE_CHARS = 4

REDACTED = "[REDACTED]"

_BEARER_RE = re.compile(r"Bearer\s+\S+", re.IGNORECASE)
_API_KEY_RE = re.compile(r"""(api[_-]?key)(["']?\s*[=:]\s*["']?)[A-Za-z0-9._-]+""", re.IGNORECASE)


def validate_api_key(api_key: Any) -> bool:
    """True iff ``api_key`` is a non-blank string with the ``apk_`` prefix and minimum length."""
    if not isinstance(api_key, str) or not api_key.strip():
        return False
    return api_key.startswith(API_KEY_PREFIX) and len(api_key) >= MIN_API_KEY_LENGTH


def mask_for_logging(value: Any) -> str:
    if not isinstance(value, str) or len(value) < MASK_MIN_LENGTH:
        return MASK
    return f"{value[:MASK_VISIBLE_CHARS]}...{value[-MASK_VISIBLE_CHARS:]}"


def sanitize_error_message(error: Any) -> str:
    """Render ``error`` as text with bearer tokens and api-key values redacted.

    Accepts exceptions, strings or arbitrary objects and never raises.
    """
    try:
        message = str(error)
    except Exception:
        message = f"<unprintable {type(error).__name__}>"
    message = _BEARER_RE.sub(f"Bearer {REDACTED}", message)
    return _API_KEY_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", message)
