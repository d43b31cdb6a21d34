"""Helpers for shortening and masking values shown to users."""

from typing import Any, Optional


MASK_CHAR = "*"

# Keys shorter than this are fully masked.
MIN_REVEAL_LENGTH = 12


def truncate_middle(value: Any, max_len: int = 50) -> str:
    """Shorten text by replacing its middle with an ellipsis.

    Args:
        value: Text to shorten; non-strings are converted with ``str``.
        max_len: Maximum length of the result. Non-positive values fall back to 50.

    Returns:
        The original text when it fits, otherwise ``head...tail``.
    """
    text = value if isinstance(value, str) else str(value if value is not None else "")
    if max_len <= 0:
        max_len = 50
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    half = (max_len - 3) // 2
    return text[:half] + "..." + text[len(text) - (max_len - 3 - half) :]


def mask_secret(secret: Optional[str], visible: int = 4) -> str:
    """Return a secret with everything but its edges replaced by ``*``."""
    if not secret:
        return ""
    if len(secret) < MIN_REVEAL_LENGTH:
        return MASK_CHAR * len(secret)
    return f"{secret[:visible]}{MASK_CHAR * 4}{secret[-visible:]}"
