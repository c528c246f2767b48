"""
Input Normalisation and Validation Helpers.

Pure functions applied to raw transaction payloads before any remote call
is made.  Each helper either returns the normalised value or raises
:class:`ValidationError`, which services translate into a ``400``
``ServiceResult``.

Amounts accept both plain and pt-BR formatted input::

    parse_amount("50.00")      -> Decimal("50.00")
    parse_amount("50,00")      -> Decimal("50.00")
    parse_amount("1.234,56")   -> Decimal("1234.56")
    parse_amount("R$ 1.234,56") -> Decimal("1234.56")
    parse_amount("1,234.56")   -> Decimal("1234.56")
"""

from __future__ import annotations

import json
import re
import uuid
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from dateutil import parser as date_parser

__all__ = [
    "ValidationError",
    "is_valid_uuid",
    "normalize_date",
    "normalize_tags",
    "parse_amount",
    "require_uuid",
]

AmountInput = Union[str, int, float, Decimal]
DateInput = Union[str, date, datetime]

_CENTS = Decimal("0.01")

# Currency markers stripped before parsing.  ``R$`` and ``US$`` must be
# removed before the bare ``$``.
_RE_CURRENCY = re.compile(r"R\$|US\$|[$€£]|BRL|USD|EUR", re.IGNORECASE)
_RE_WHITESPACE = re.compile(r"\s+")
_RE_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")


class ValidationError(ValueError):
    """Raised when a payload field is missing or malformed."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------

def is_valid_uuid(value: object) -> bool:
    """``True`` when *value* is a canonical hyphenated UUID string."""
    if not isinstance(value, str):
        return False
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False
    return str(parsed) == value.lower()


def require_uuid(field: str, value: object) -> str:
    if not is_valid_uuid(value):
        raise ValidationError(field, f"not a valid UUID: {value!r}")
    return str(value).lower()


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------

def _unlocalize(raw: str) -> str:
    """Rewrite a locale-formatted number into ``1234.56`` form.

    When both separators occur, the right-most one is the decimal mark.
    A lone comma is a decimal mark (pt-BR) unless it repeats, in which
    case it groups thousands; the same goes for a lone dot.
    """
    text = _RE_WHITESPACE.sub("", _RE_CURRENCY.sub("", raw))
    has_dot = "." in text
    has_comma = "," in text

    if has_dot and has_comma:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if has_comma:
        if text.count(",") > 1:
            return text.replace(",", "")
        return text.replace(",", ".")
    if has_dot and text.count(".") > 1:
        return text.replace(".", "")
    return text


def parse_amount(value: AmountInput, allow_zero: bool = False) -> Decimal:
    """Parse *value* into a positive two-place ``Decimal``.

    With *allow_zero*, zero in any accepted spelling (``0``, ``"0.0"``,
    ``"R$ 0,00"`` ...) is returned as ``Decimal("0.00")``.

    Raises:
        ValidationError: If the value is empty, unparseable, not finite,
            negative, or zero without *allow_zero*.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("amount", "is required")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        text = _unlocalize(str(value))
        if not text:
            raise ValidationError("amount", "is required")
        if not _RE_NUMERIC.match(text):
            raise ValidationError("amount", f"could not parse {value!r}")
        try:
            amount = Decimal(text)
        except InvalidOperation as exc:
            raise ValidationError("amount", f"could not parse {value!r}") from exc

    if not amount.is_finite():
        raise ValidationError("amount", "must be a finite number")
    amount = amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(
            "amount", "must not be negative" if allow_zero else "must be greater than zero"
        )
    return amount


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

# Year-first strings (ISO, 2026/10/10) are read as Y-M-D; anything else is
# read day first, the way pt-BR users type dates.
_RE_YEAR_FIRST = re.compile(r"^\d{4}\D")


def normalize_date(value: DateInput) -> date:
    """Reduce *value* to a calendar day.

    Accepts ``date``, ``datetime`` (time part dropped), ISO strings with or
    without a time component, and day-first forms such as ``DD/MM/YYYY``.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("date", "is required")

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        parsed = date_parser.parse(text, dayfirst=not _RE_YEAR_FIRST.match(text))
    except (ValueError, OverflowError) as exc:
        raise ValidationError("date", f"unrecognised date {value!r}") from exc
    return parsed.date()


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

def normalize_tags(value: object) -> list[str]:
    """Coerce *value* to a list of non-empty, stripped tag strings.

    Accepts ``None``, a list/tuple, a JSON array string, or a
    comma-separated string.
    """
    if value is None:
        return []

    items: list[object]
    if isinstance(value, (list, tuple)):
        items = list(value)
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValidationError("tags", "malformed JSON array") from exc
            if not isinstance(decoded, list):
                raise ValidationError("tags", "JSON value is not an array")
            items = decoded
        else:
            items = text.split(",")
    else:
        raise ValidationError("tags", f"unsupported type {type(value).__name__}")

    return [str(item).strip() for item in items if str(item).strip()]
