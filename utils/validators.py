"""Form-field checks shared by the registration and planning endpoints."""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

PHONE_RE = re.compile(r"[0-9]{10}")
EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
INT_RE = re.compile(r"[0-9]+")
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'
MEASURE_RE = re.compile(r"(\d+%|correctly|successfully)", re.IGNORECASE)


def is_valid_phone(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(PHONE_RE.fullmatch(value))


def is_valid_email(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.fullmatch(value))


def password_problems(value: Optional[str]) -> List[str]:
    pwd = value if isinstance(value, str) else ""
    problems: List[str] = []
    if len(pwd) < 8:
        problems.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", pwd):
        problems.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", pwd):
        problems.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", pwd):
        problems.append("Password must contain at least one number")
    if not any(ch in SPECIAL_CHARS for ch in pwd):
        problems.append("Password must contain at least one special character")
    return problems


def clean_text(value: Any) -> Optional[str]:
    """Stripped text for a JSON scalar, ``None`` for lists, objects and booleans."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return None


def clean_fields(data: Mapping[str, Any], fields: Iterable[str]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Coerce ``fields`` of a request body to stripped strings.

    Returns ``(cleaned, errors)``; a field holding a list or object is
    reported in ``errors`` and left out of ``cleaned``.
    """
    cleaned: Dict[str, str] = {}
    errors: Dict[str, str] = {}
    for field in fields:
        text = clean_text(data.get(field))
        if text is None:
            errors[field] = f"{humanize_field(field)} must be text."
        else:
            cleaned[field] = text
    return cleaned, errors


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return False
    return math.isfinite(number)


def parse_amount(value: Any) -> Optional[Decimal]:
    """Finite, non-negative money amount with at most two decimals, else ``None``."""
    if not is_number(value):
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if amount < 0 or amount != amount.quantize(Decimal("0.01")):
        return None
    return amount


def parse_count(value: Any) -> Optional[int]:
    """Positive whole number from an int or a string of ASCII digits."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and INT_RE.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if number > 0 else None


def humanize_field(name: str) -> str:
    """``joiningDate`` -> ``Joining Date``."""
    spaced = re.sub(r"([A-Z])", r" \1", name).strip()
    return spaced[:1].upper() + spaced[1:]


def missing_fields(data: Mapping[str, Any], required: Iterable[str]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for field in required:
        value = data.get(field)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            errors[field] = f"{humanize_field(field)} is required."
    return errors


def is_smart_objective(text: Optional[str]) -> bool:
    # Outcome ("will be able to") plus something measurable.
    if not text:
        return False
    return "will be able to" in text.lower() and bool(MEASURE_RE.search(text))


def validate_units(units: Iterable[Mapping[str, Any]], total_units: int) -> bool:
    if total_units < 1:
        return False
    return all((u.get("title") or "").strip() and (u.get("duration") or "").strip() for u in units)


def parse_name_list(raw: Any) -> Optional[List[str]]:
    """Names from a list or a comma separated string; ``None`` when malformed."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip()]
    if not isinstance(raw, list):
        return None
    names = [clean_text(s) for s in raw]
    if any(n is None for n in names):
        return None
    return [n for n in names if n]
