"""Classification of NEAR RPC failures."""

import re
from collections.abc import Mapping
from typing import Any

# Matched against the message with everything but letters stripped
_MISSING_ACCOUNT_MARKERS = ("accountdoesnotexist", "doesntexist", "doesnotexist")
_NON_LETTERS = re.compile(r"[^a-z]")


def _field(error: Any, name: str) -> str:
    if isinstance(error, Mapping):
        value = error.get(name)
    else:
        value = getattr(error, name, None)
    return "" if value is None else str(value)


def is_account_does_not_exist_error(error: Any) -> bool:
    """Check whether an RPC failure means the account has not been created."""
    if _field(error, "type") == "AccountDoesNotExist":
        return True

    message = _field(error, "message")
    if not message and isinstance(error, BaseException):
        message = str(error)
    normalized = _NON_LETTERS.sub("", message.lower())
    return any(marker in normalized for marker in _MISSING_ACCOUNT_MARKERS)
