"""
Security utilities for local storage key validation
"""
import re

# Longest key accepted (keeps file names well under filesystem limits)
MAX_KEY_LENGTH = 200

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._\-]*$')


def validate_storage_key(key: str) -> str:
    """
    Validate a local storage key before it is turned into a file path.

    Keys become file names inside the storage directory, so anything that
    could escape it is rejected:
    - Directory separators (/ and \\)
    - Path traversal sequences (..)
    - Null bytes and other non-filename characters
    - Leading dots (hidden files)

    Args:
        key: Storage key

    Returns:
        The key, unchanged

    Raises:
        ValueError: If the key is empty, too long or contains unsafe characters
    """
    if not key:
        raise ValueError("Storage key cannot be empty")

    if len(key) > MAX_KEY_LENGTH:
        raise ValueError(f"Storage key is longer than {MAX_KEY_LENGTH} characters")

    if ".." in key or not _KEY_PATTERN.match(key):
        raise ValueError(f"Storage key '{key}' contains unsafe characters")

    return key
