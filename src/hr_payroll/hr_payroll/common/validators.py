from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def _text(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip()


def require_non_empty(value: Optional[str], field_name: str) -> str:
    value = _text(value, field_name)
    if not value:
        raise ValidationError(f"{field_name} is required")
    return value


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    value = _text(value, field_name)
    if len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def optional_text(value: Optional[str], field_name: str = "value") -> Optional[str]:
    """Trim free text; empty becomes None."""
    return _text(value, field_name) or None


def parse_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def parse_decimal(value: Any, field_name: str, *, quantum: Optional[Decimal] = None) -> Decimal:
    """Parse a finite Decimal, optionally rounded half-up to ``quantum`` (the column scale)."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if quantum is not None:
        d = d.quantize(quantum, rounding=ROUND_HALF_UP)
    return d


def require_non_negative(value: Any, field_name: str, *, quantum: Optional[Decimal] = None) -> Decimal:
    d = parse_decimal(value, field_name, quantum=quantum)
    if d < 0:
        raise ValidationError(f"{field_name} must be >= 0")
    return d


def require_positive(value: Any, field_name: str, *, quantum: Optional[Decimal] = None) -> Decimal:
    # Checked after rounding: 0.04 days rounds to 0.0 and is refused.
    d = parse_decimal(value, field_name, quantum=quantum)
    if d <= 0:
        raise ValidationError(f"{field_name} must be > 0")
    return d


def require_int_range(value: Any, field_name: str, *, low: int, high: Optional[int] = None) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        i = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field_name} must be an integer")
        if not d.is_finite() or d != d.to_integral_value():
            raise ValidationError(f"{field_name} must be an integer")
        i = int(d)
    if i < low or (high is not None and i > high):
        bounds = f"{low}..{high}" if high is not None else f">= {low}"
        raise ValidationError(f"{field_name} must be {bounds}")
    return i
