"""Shared utility functions and models for the Monetrix service layer.

Convenience re-exports so consumers can import directly from
``monetrix.utils`` (e.g. ``from monetrix.utils import parse_amount``)
while full absolute imports remain supported.
"""

from monetrix.utils.audit import AuditEvent, fetch_audit_events, log_audit_event
from monetrix.utils.general import convert_to_json_safe, month_key, shift_month
from monetrix.utils.string_helpers import (
    normalize_keys,
    sanitize_postgrest_value,
    to_snake_case,
)
from monetrix.utils.validation import (
    ValidationError,
    is_valid_uuid,
    normalize_date,
    normalize_tags,
    parse_amount,
    require_uuid,
)

__all__ = [
    "AuditEvent",
    "ValidationError",
    "convert_to_json_safe",
    "fetch_audit_events",
    "is_valid_uuid",
    "log_audit_event",
    "month_key",
    "normalize_date",
    "normalize_keys",
    "normalize_tags",
    "parse_amount",
    "require_uuid",
    "sanitize_postgrest_value",
    "shift_month",
    "to_snake_case",
]
