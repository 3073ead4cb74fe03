"""
Core Utilities

Shared helpers used across the shipping layer: credential masking and log redaction.
"""
import re

# Keys whose values are never written to logs verbatim
_SENSITIVE_KEYS = {
    "name", "phone", "email", "company_name",
    "address_line1", "address_line2", "address_line3",
}

_PII_PATTERNS = [
    # Phone numbers
    (r'\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b', '[PHONE]'),
    (r'\+\d{1,3}[-.\s]?\d{1,4}[-.\s]?\d{1,4}[-.\s]?\d{1,9}\b', '[PHONE]'),
    # Emails
    (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b', '[EMAIL]'),
    # Postal codes
    (r'\b\d{5}-\d{4}\b', '[ZIP]'),
    (r'\b[A-Z]\d[A-Z]\s*\d[A-Z]\d\b', '[POSTAL]'),  # Canada
]


def mask_secret(value: str, visible: int = 4) -> str:
    """Mask all but the last `visible` characters of a credential."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


def sanitize_for_logging(payload, max_length: int = 500):
    """
    Remove PII from a payload for safe logging.

    Dicts and lists are walked recursively; values under sensitive keys are
    replaced outright, other strings are pattern-redacted and truncated.

    Args:
        payload: dict, list, or str that may contain PII
        max_length: Maximum length of any string in the result

    Returns:
        A redacted copy of the payload
    """
    if isinstance(payload, dict):
        return {
            k: "[REDACTED]" if k in _SENSITIVE_KEYS and v else sanitize_for_logging(v, max_length)
            for k, v in payload.items()
        }
    if isinstance(payload, list):
        return [sanitize_for_logging(v, max_length) for v in payload]
    if not isinstance(payload, str):
        return payload

    sanitized = payload[:max_length]
    for pattern, replacement in _PII_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
    return sanitized
