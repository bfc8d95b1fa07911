import re
from datetime import date
from typing import Optional

_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_month(month: str) -> tuple[int, int]:
    match = _MONTH_RE.match(month or "")
    if not match:
        raise ValueError(f"Invalid month: {month!r} (expected YYYY-MM)")
    return int(match.group(1)), int(match.group(2))


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def validate_month(month: str) -> str:
    parse_month(month)
    return month


def get_previous_month(month: str) -> str:
    year, m = parse_month(month)
    if m == 1:
        return format_month(year - 1, 12)
    return format_month(year, m - 1)


def get_next_month(month: str) -> str:
    year, m = parse_month(month)
    if m == 12:
        return format_month(year + 1, 1)
    return format_month(year, m + 1)


def current_month(*, today: Optional[date] = None) -> str:
    today = today or date.today()
    return format_month(today.year, today.month)
