from datetime import datetime, timedelta, timezone
from typing import Optional, Union
import math
import re

ResponseValue = Union[str, int, float, bool]

PASSWORD_SPECIAL_CHARACTERS = "@$!%*?&"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}


def get_utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime to ISO format with timezone"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        # SQLite hands back naive values; everything is stored in UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def parse_duration(value: Union[str, int]) -> timedelta:
    """
    Parse a token lifetime such as "1d", "12h", "30m", "45s" or "3600"

    Args:
        value: Duration string (bare numbers are seconds) or seconds as int

    Returns:
        The duration as a timedelta
    """
    if isinstance(value, int):
        seconds = value
    else:
        match = _DURATION_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        seconds = int(amount) * _DURATION_UNITS[unit.lower()]
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return timedelta(seconds=seconds)


def validate_password_strength(password: str) -> tuple[bool, str]:
    """
    Validate password strength

    Args:
        password: Password to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not re.search(r"[a-z]", password) \
            or not re.search(r"[A-Z]", password) \
            or not re.search(r"\d", password) \
            or not any(char in PASSWORD_SPECIAL_CHARACTERS for char in password):
        return False, (
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )

    return True, ""


def stringify_value(value: ResponseValue) -> str:
    """Serialize a submitted response value to the text form it is stored in"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_stored_value(value: str) -> ResponseValue:
    """
    Best-effort recovery of a stored response value

    "true"/"false" become booleans, text that parses as a finite number
    becomes an int or float, anything else is returned unchanged.
    """
    if value == "true":
        return True
    if value == "false":
        return False
    # int() and float() accept digit separators, "1_000" stays text
    if value.strip() == "" or "_" in value:
        return value

    try:
        return int(value)
    except ValueError:
        pass

    try:
        number = float(value)
    except ValueError:
        return value
    if math.isnan(number) or math.isinf(number):
        return value
    return number
