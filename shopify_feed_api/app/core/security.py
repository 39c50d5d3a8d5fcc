"""
Security utilities - never log or return secrets.
"""

import re
from typing import Any, Dict


SENSITIVE_KEYS = (
    'client_secret',
    'access_token',
    'x-shopify-access-token',
    'password',
    'secret',
    'token',
)

# Shopify token prefixes: admin API, custom app, shared secret, app access
_TOKEN_PATTERNS = [
    (re.compile(r'shp(at|ca|ss|pa|ua)_[a-zA-Z0-9]{16,}'), r'shp\1_***'),
    (re.compile(r'("?(?:access_token|client_secret)"?\s*[:=]\s*"?)([^"&\s,}]+)', re.IGNORECASE), r'\1***'),
]


def sanitize_dict_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive fields from dict for logging.

    Args:
        data: Dictionary that may contain secrets (request headers, form data).

    Returns:
        Sanitized copy with secrets replaced.
    """
    result = {}
    for k, v in data.items():
        if isinstance(k, str) and any(s in k.lower() for s in SENSITIVE_KEYS):
            result[k] = '***REDACTED***'
        elif isinstance(v, dict):
            result[k] = sanitize_dict_for_logging(v)
        elif isinstance(v, list):
            result[k] = [
                sanitize_dict_for_logging(item) if isinstance(item, dict) else item
                for item in v
            ]
        else:
            result[k] = v
    return result


def sanitize_string_for_logging(text: str) -> str:
    """
    Remove potential secrets (Shopify tokens, client secrets) from a string.
    """
    if not text:
        return text

    result = text
    for pattern, replacement in _TOKEN_PATTERNS:
        result = pattern.sub(replacement, result)
    return result
