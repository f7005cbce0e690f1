# /kaani/utils/audit_logging.py

import hashlib
import secrets
from typing import Any, Mapping, Optional

import structlog

from kaani.config.settings import settings

# Audit events are single-line structured records. Raw farmer ids are never
# logged; only a salted, truncated hash.

audit_logger = structlog.get_logger("kaani.audit")

CORRELATION_HEADERS = ("x-request-id", "x-correlation-id", "x-trace-id")


def hash_farmer_id(farmer_id: Optional[str], salt: Optional[str] = None) -> str:
    """SHA-256 of id + salt, first 16 hex chars. "unknown" without both."""
    salt = salt if salt is not None else settings.log_hash_salt
    if not farmer_id or not salt:
        return "unknown"
    return hashlib.sha256(f"{farmer_id}{salt}".encode("utf-8")).hexdigest()[:16]


def get_correlation_id(headers: Optional[Mapping[str, Any]] = None) -> str:
    """Reuses a request/correlation/trace id header, else generates one."""
    if headers:
        for name in CORRELATION_HEADERS:
            value = headers.get(name)
            if value and isinstance(value, str):
                return value
    return secrets.token_hex(8)


def log_event(event: str, **payload: Any) -> None:
    """Emits one structured audit event. Logging failures never propagate."""
    try:
        audit_logger.info(event, **payload)
    except Exception as e:
        structlog.get_logger(__name__).warning("audit_event_failed", audit_event=event, error=str(e))
