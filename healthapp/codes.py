"""
Human-readable reference codes (health card numbers, transaction ids).
"""

import secrets
import string
import time

_ALPHABET = string.ascii_uppercase + string.digits


def reference_code(prefix: str, suffix_length: int = 9) -> str:
    """``<prefix><epoch millis><random base36 suffix>``, e.g. HC1700000000000X7K2..."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}{millis}{suffix}"
