from __future__ import annotations
from datetime import date
from decimal import Decimal

from dataclasses import dataclass
from typing import Any

from armory.money import to_cost
from armory.time_utils import parse_iso_date

# Integer columns are 32-bit on every supported backend
MAX_INT = 2**31 - 1


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class DateWindow:
    """Inclusive business-date window; either bound may be open."""
    start: date | None = None
    end: date | None = None

    def contains(self, value: date | None) -> bool:
        if value is None:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
        }


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    page_size: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _in_range(number: int, field: str) -> int:
    if abs(number) > MAX_INT:
        raise ValidationError(f"{field} is out of range (max {MAX_INT})")
    return number


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion.

    Accepts ints and plain digit strings within 32-bit range; rejects bools,
    floats, decimals and scientific notation (partial quantities are never valid).
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return _in_range(value, field)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
        return _in_range(number, field)
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_int(value: Any, field: str) -> int:
    if value is None:
        raise ValidationError(f"{field} is required")
    return coerce_int(value, field)


def optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(value, field)


def require_positive_int(value: Any, field: str) -> int:
    number = require_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return number


def parse_cost(value: Any, field: str, *, required: bool = True) -> Decimal | None:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        cost = to_cost(value)
    except ValueError:
        raise ValidationError(f"{field} must be a number")
    if cost < 0:
        raise ValidationError(f"{field} must be non-negative")
    return cost


def parse_date(value: Any, field: str) -> date | None:
    try:
        return parse_iso_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO-8601 date")


def parse_window(start: Any, end: Any) -> DateWindow:
    window = DateWindow(parse_date(start, "start_date"), parse_date(end, "end_date"))
    if window.start and window.end and window.start > window.end:
        raise ValidationError("start_date must not be after end_date")
    return window


def require_text(value: Any, field: str, *, max_length: int = 255) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text


def optional_text(value: Any, field: str, *, max_length: int = 2000) -> str | None:
    if value is None or not str(value).strip():
        return None
    return require_text(value, field, max_length=max_length)


def validate_choice(value: Any, field: str, choices) -> str | None:
    if value is None or value == "":
        return None
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(choices))}")
    return value


def parse_page(page: Any, page_size: Any, *, default_size: int = 10, max_size: int = 100) -> PageRequest:
    page_num = optional_int(page, "page")
    size = optional_int(page_size, "page_size")
    if page_num is None:
        page_num = 1
    if size is None:
        size = default_size
    if page_num < 1:
        raise ValidationError("page must be >= 1")
    if size < 1 or size > max_size:
        raise ValidationError(f"page_size must be between 1 and {max_size}")
    return PageRequest(page=page_num, page_size=size)
