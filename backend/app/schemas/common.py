"""
Shared field types and coercion helpers for engine input records.

Input records arrive from storage and UI layers that do not validate shapes,
so every validator here is lenient: malformed values collapse to a safe
default instead of raising.
"""

import math
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for immutable engine records accepting snake_case or camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class SalaryRange(RecordModel):
    kind: Literal["range"] = "range"
    min: float
    max: float


class UnstructuredSalary(RecordModel):
    """Free-text salary such as "Competitive" or "DOE"."""

    kind: Literal["unstructured"] = "unstructured"
    text: str


Salary = Annotated[Union[SalaryRange, UnstructuredSalary], Field(discriminator="kind")]


def to_number(value: Any) -> Optional[float]:
    """Return value as a finite float, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_str_list(value: Any) -> Tuple[str, ...]:
    """Coerce a sequence of strings; anything else becomes an empty tuple."""
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def coerce_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def coerce_optional_str(value: Any) -> Optional[str]:
    text = coerce_str(value)
    return text if text.strip() else None


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return False


def coerce_enum(enum_cls, value: Any):
    """Case-insensitive enum lookup by value or name; unknown values become None."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    needle = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == needle or member.name.lower() == needle:
            return member
    return None


def coerce_salary_range(value: Any) -> Optional[dict]:
    """
    Build SalaryRange input from a {min, max} mapping.

    A missing max clamps to min and a missing min falls back to max.
    Returns None when neither bound is numeric.
    """
    if isinstance(value, SalaryRange):
        return value.model_dump()
    if not isinstance(value, dict):
        return None
    low = to_number(value.get("min"))
    high = to_number(value.get("max"))
    if low is None and high is None:
        return None
    if low is None:
        low = high
    if high is None:
        high = low
    if high < low:
        low, high = high, low
    return {"kind": "range", "min": low, "max": high}


def coerce_salary(value: Any) -> Optional[dict]:
    """Tag a raw job salary as either a range or unstructured text."""
    if isinstance(value, (SalaryRange, UnstructuredSalary)):
        return value.model_dump()
    if isinstance(value, str):
        return {"kind": "unstructured", "text": value} if value.strip() else None
    if isinstance(value, dict):
        if value.get("kind") == "unstructured":
            return {"kind": "unstructured", "text": coerce_str(value.get("text"))}
        return coerce_salary_range(value)
    number = to_number(value)
    if number is not None:
        return {"kind": "range", "min": number, "max": number}
    return None
