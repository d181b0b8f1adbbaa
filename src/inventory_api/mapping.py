"""Small converters used when mapping SDWIS/STATE rows to DW-SFTIES fields."""

from decimal import Decimal
from typing import Any, Dict, Optional


def trimmed(value: Any) -> Optional[str]:
    """Trim CHAR padding; blank values become None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def ref_code(value: Any, key: str) -> Optional[Dict[str, str]]:
    """Wrap a code column in its reference-code object, e.g. ``{"wsStatusCode": "A"}``."""
    if value is None or value == "":
        return None
    return {key: str(value).strip()}


def number(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def integer(value: Any) -> Optional[int]:
    """Normalize whole numbers some drivers hand back as Decimal or float."""
    if isinstance(value, (Decimal, float)) and value == int(value):
        return int(value)
    return value
