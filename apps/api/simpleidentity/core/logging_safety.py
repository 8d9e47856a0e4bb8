"""Log handles for provider subjects, account ids and correlation ids.

Raw identifiers never reach log lines. Each kind of identifier gets its own
keyed BLAKE2b digest, so a subject and an account id with the same text
produce unrelated handles and cannot be joined across log streams.
"""

from __future__ import annotations

import hashlib
from typing import Any

SUBJECT_PREFIX = "sub"
ACCOUNT_PREFIX = "acc"
CORRELATION_PREFIX = "cid"

_DIGEST_BYTES = 6


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a stable, non-reversible handle such as ``sub-3fa2c91b0d4e``."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"

    digest = hashlib.blake2b(
        text.encode("utf-8"),
        digest_size=_DIGEST_BYTES,
        person=f"simpleid.{prefix}".encode("utf-8")[:16],
    ).hexdigest()
    return f"{prefix}-{digest}"


def subject_handle(subject_id: Any) -> str:
    return safe_log_identifier(subject_id, prefix=SUBJECT_PREFIX)


def account_handle(account_id: Any) -> str:
    return safe_log_identifier(account_id, prefix=ACCOUNT_PREFIX)


def correlation_handle(correlation_id: Any) -> str:
    return safe_log_identifier(correlation_id, prefix=CORRELATION_PREFIX)


__all__ = [
    "ACCOUNT_PREFIX",
    "CORRELATION_PREFIX",
    "SUBJECT_PREFIX",
    "account_handle",
    "correlation_handle",
    "safe_log_identifier",
    "subject_handle",
]
