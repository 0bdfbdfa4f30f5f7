import html
import re
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Escape HTML special characters and strip control characters.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    value = html.escape(value.strip(), quote=True)
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)


def sanitize_list(values: Optional[list]) -> Optional[list]:
    """Sanitize every string in a list, leaving other items untouched"""
    if values is None:
        return None
    return [sanitize_string(v) if isinstance(v, str) else v for v in values]


def sanitize_dict(data: dict[str, Any], fields: Optional[list[str]] = None) -> dict[str, Any]:
    """
    Sanitize string values in a dictionary, recursing into nested dicts and lists.

    Args:
        data: Dictionary to sanitize
        fields: Keys to sanitize. If None, sanitizes all strings.

    Returns:
        New dictionary with sanitized values
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if fields is not None and key not in fields:
            sanitized[key] = value
        elif isinstance(value, str):
            sanitized[key] = sanitize_string(value)
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value)
        elif isinstance(value, list):
            sanitized[key] = [
                (
                    sanitize_dict(item)
                    if isinstance(item, dict)
                    else sanitize_string(item) if isinstance(item, str) else item
                )
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized
