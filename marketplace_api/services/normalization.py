from __future__ import annotations

import math
import re
from typing import Any, Optional

_WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_reg_no(reg_no: Optional[str]) -> str:
    """Uppercase a plate number and drop all whitespace: ' mh12 ab1234 ' -> 'MH12AB1234'."""
    if not reg_no:
        return ""
    return _WHITESPACE_PATTERN.sub("", str(reg_no)).upper()


def normalize_phone(phone: Optional[str]) -> str:
    """Trim surrounding whitespace; the stored phone is otherwise kept as entered."""
    if not phone:
        return ""
    return str(phone).strip()


def normalize_text(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_number(value: Any) -> Optional[float]:
    """Parse form input into a finite float; None when it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number
