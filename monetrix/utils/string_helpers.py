"""
String Helpers.

Key-case normalisation for incoming payloads and escaping for values that
are interpolated into PostgREST filter expressions.

Payloads built by form layers arrive in camelCase (``transactionDate``,
``accountId``); the service layer works in snake_case, so every raw dict
passes through :func:`normalize_keys` first.
"""

from __future__ import annotations

import re
from typing import Union

__all__ = [
    "JsonValue",
    "normalize_keys",
    "sanitize_postgrest_value",
    "to_snake_case",
]

JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, "JsonValue"],
    list["JsonValue"],
]

# "HTTPStatus" -> "HTTP_Status"
_RE_UPPER_RUN = re.compile(r"([A-Z]+)([A-Z][a-z])")
# "accountId" -> "account_Id"
_RE_CAMEL_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")
_RE_MULTI_UNDERSCORE = re.compile(r"_+")


def to_snake_case(name: str) -> str:
    """Convert a camelCase, PascalCase, or mixed-case string to snake_case.

    ::

        accountId          -> account_id
        transferAccountId  -> transfer_account_id
        transactionDate    -> transaction_date
        isRecurring        -> is_recurring
        payment_method     -> payment_method
    """
    s1 = _RE_UPPER_RUN.sub(r"\1_\2", name)
    s2 = _RE_CAMEL_BOUNDARY.sub(r"\1_\2", s1)
    return _RE_MULTI_UNDERSCORE.sub("_", s2).lower()


def normalize_keys(data: dict[str, object]) -> dict[str, object]:
    """Return a copy of *data* with top-level keys converted to snake_case.

    Values are left untouched; tags and other list values are handled by
    their own normalisers.
    """
    return {to_snake_case(key): value for key, value in data.items()}


# Characters unsafe for PostgREST filter interpolation: commas (OR
# predicates), periods (operator separators), parentheses (grouping),
# percent/underscore (SQL wildcards), backslash (ILIKE escape), colon
# (cast syntax).  Allowlist keeps alphanumerics, whitespace, hyphens and
# accented Latin characters (U+00C0..U+024F) for Portuguese descriptions.
_POSTGREST_UNSAFE_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9\s\-\u00C0-\u024F]")


def sanitize_postgrest_value(value: str) -> str:
    """Strip characters unsafe for PostgREST filter interpolation.

    Parameters
    ----------
    value:
        The raw user-supplied search string.

    Returns
    -------
    str
        A sanitized string safe for interpolation into PostgREST
        ``ilike`` filter expressions.
    """
    return _POSTGREST_UNSAFE_RE.sub("", value)
