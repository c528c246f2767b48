"""General Utility Functions."""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Protocol, Union, runtime_checkable

from dateutil.relativedelta import relativedelta

__all__ = ["convert_to_json_safe", "month_key", "shift_month"]


# ---------------------------------------------------------------------------
# Type definitions
# ---------------------------------------------------------------------------

JsonSafeType = Union[
    None,
    str,
    int,
    bool,
    float,
    Dict[str, "JsonSafeType"],
    List["JsonSafeType"],
]
"""The set of types that are natively representable in JSON."""


@runtime_checkable
class PydanticLike(Protocol):
    """Protocol for objects that expose a Pydantic-style ``model_dump`` method."""

    def model_dump(self) -> Dict[str, "JsonInputType"]: ...  # noqa: E704


JsonInputType = Union[
    None,
    str,
    int,
    bool,
    float,
    Decimal,
    datetime,
    date,
    Enum,
    Dict[str, "JsonInputType"],
    List["JsonInputType"],
    PydanticLike,
]
"""All types accepted as input to :func:`convert_to_json_safe`."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def convert_to_json_safe(data: JsonInputType) -> JsonSafeType:
    """Recursively convert a data structure to JSON-safe types.

    Handles:
    - ``datetime`` / ``date`` objects -> ISO-format strings
    - ``Decimal`` -> fixed-point string (money must not pass through float)
    - ``Enum`` -> its value
    - ``float`` NaN / Inf -> ``None``
    - Nested dicts, lists and Pydantic models
    """
    if data is None:
        return None

    # StrEnum is a str subclass; unwrap it first so the payload carries
    # the plain value.
    if isinstance(data, Enum):
        return convert_to_json_safe(data.value)

    if isinstance(data, (str, int, bool)):
        return data

    if isinstance(data, float):
        if math.isnan(data) or math.isinf(data):
            return None
        return data

    if isinstance(data, Decimal):
        return format(data, "f")

    # datetime MUST be checked before date because datetime is a subclass of date.
    if isinstance(data, datetime):
        return data.isoformat()

    if isinstance(data, date):
        return data.isoformat()

    if isinstance(data, dict):
        return {key: convert_to_json_safe(value) for key, value in data.items()}

    if isinstance(data, (list, tuple)):
        return [convert_to_json_safe(item) for item in data]

    if isinstance(data, PydanticLike):
        return convert_to_json_safe(data.model_dump())

    # Unknown types (uuid.UUID, Path ...) fall back to their string form.
    return str(data)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` bucket a day falls in."""
    return f"{day.year:04d}-{day.month:02d}"


def shift_month(day: date, months: int) -> date:
    """Return the first day of the month *months* away from *day*'s month."""
    return day.replace(day=1) + relativedelta(months=months)
