"""Secret masking for log output.

Credentials handed to the step are registered once at startup; the
``SecretMaskingFilter`` then replaces every occurrence in formatted log
records with ``****``.
"""

from __future__ import annotations

import logging
import threading

MASK = "****"

_SECRETS: set[str] = set()
_LOCK = threading.Lock()


def register_secret(value: str) -> None:
    """Register *value* for masking. Empty values are ignored."""
    if not value:
        return
    with _LOCK:
        _SECRETS.add(value)


def clear_secrets() -> None:
    """Forget all registered secrets."""
    with _LOCK:
        _SECRETS.clear()


def mask_secrets(text: str) -> str:
    """Return *text* with every registered secret replaced by ``MASK``."""
    with _LOCK:
        # Longest first so a secret containing another is masked whole.
        secrets = sorted(_SECRETS, key=len, reverse=True)
    for secret in secrets:
        text = text.replace(secret, MASK)
    return text


class SecretMaskingFilter(logging.Filter):
    """Logging filter that masks registered secrets in each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        if record.exc_info and record.exc_info[1] is not None:
            # Render the traceback now so the formatter reuses the masked text.
            formatter = logging.Formatter()
            record.exc_text = mask_secrets(formatter.formatException(record.exc_info))
            record.exc_info = None
        return True
