import math
import re
from dataclasses import dataclass
from typing import Any, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a field check; ``value`` holds the normalized value, if any."""
    is_valid: bool
    error: Optional[str] = None
    value: Any = None


def ok(value: Any = None) -> ValidationResult:
    return ValidationResult(True, value=value)


def fail(error: str) -> ValidationResult:
    return ValidationResult(False, error=error)


def parse_int(value: Any) -> Optional[int]:
    """
    Parse an integer from form or JSON input.

    Accepts ints and strings with a leading integer ("12", " 7 ", "12.5" -> 12).
    Returns None when no integer can be read. Booleans are rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))
