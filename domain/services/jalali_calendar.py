"""
Jalali (Solar Hijri) Calendar Module

Pure arithmetic conversion between the Gregorian and Jalali calendars plus
string helpers for the "YYYY/MM/DD" form used everywhere in the shop.

Dates are persisted with ASCII digits and displayed with Persian digits.
Leap years follow the 33-year cycle approximation (see is_jalali_leap_year).
"""
import re
from datetime import date, datetime
from typing import NamedTuple, Optional, Union

GREGORIAN_MONTH_DAYS = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]
JALALI_MONTH_DAYS = [31, 31, 31, 31, 31, 31, 30, 30, 30, 30, 30, 29]

# Remainders of year % 33 that are leap years
JALALI_LEAP_REMAINDERS = frozenset({1, 5, 9, 13, 17, 22, 26, 30})

PERSIAN_MONTH_NAMES = [
    "فروردین", "اردیبهشت", "خرداد",
    "تیر", "مرداد", "شهریور",
    "مهر", "آبان", "آذر",
    "دی", "بهمن", "اسفند",
]

PERSIAN_DIGITS = "۰۱۲۳۴۵۶۷۸۹"
ARABIC_INDIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"

_TO_ASCII = str.maketrans(PERSIAN_DIGITS + ARABIC_INDIC_DIGITS, "0123456789" * 2)
_TO_PERSIAN = str.maketrans("0123456789", PERSIAN_DIGITS)
_NUMERIC_PART = re.compile(r"^[0-9]+$")


class JalaliDate(NamedTuple):
    year: int
    month: int
    day: int


GRAND_CYCLE_DAYS = 12053  # 33 years
FOUR_YEAR_CYCLE_DAYS = 1461
EPOCH_OFFSET_DAYS = 79
JALALI_BASE_YEAR = 979


def to_ascii_digits(value: str) -> str:
    return value.translate(_TO_ASCII)


def to_persian_digits(value: Union[str, int]) -> str:
    return str(value).translate(_TO_PERSIAN)


def is_gregorian_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def is_jalali_leap_year(year: int) -> bool:
    """
    33-year cycle leap rule.

    This is an approximation of the astronomical calendar. Due dates already
    stored were computed with it, so it must not be replaced.
    """
    return year % 33 in JALALI_LEAP_REMAINDERS


def jalali_month_length(year: int, month: int) -> int:
    if month <= 6:
        return 31
    if month <= 11:
        return 30
    return 30 if is_jalali_leap_year(year) else 29


def gregorian_to_jalali(value: Union[date, datetime]) -> JalaliDate:
    """
    Convert a Gregorian date (or datetime, time part ignored) to Jalali.

    Args:
        value: Gregorian date on or after 1600-03-21

    Returns:
        JalaliDate(year, month, day)
    """
    gy = value.year - 1600
    gm = value.month
    gd = value.day

    g_day_no = 365 * gy + (gy + 3) // 4 - (gy + 99) // 100 + (gy + 399) // 400
    g_day_no += sum(GREGORIAN_MONTH_DAYS[: gm - 1])
    if gm > 2 and is_gregorian_leap_year(value.year):
        g_day_no += 1
    g_day_no += gd - 1

    j_day_no = g_day_no - EPOCH_OFFSET_DAYS

    grand_cycles, j_day_no = divmod(j_day_no, GRAND_CYCLE_DAYS)
    four_year_cycles, j_day_no = divmod(j_day_no, FOUR_YEAR_CYCLE_DAYS)
    jy = JALALI_BASE_YEAR + 33 * grand_cycles + 4 * four_year_cycles

    # First year of each 4-year cycle has 366 days
    if j_day_no >= 366:
        jy += (j_day_no - 1) // 365
        j_day_no = (j_day_no - 1) % 365

    jm = 0
    while jm < 11 and j_day_no >= JALALI_MONTH_DAYS[jm]:
        j_day_no -= JALALI_MONTH_DAYS[jm]
        jm += 1

    return JalaliDate(year=jy, month=jm + 1, day=j_day_no + 1)


def _render(year: int, month: int, day: int, persian: bool) -> str:
    rendered = f"{year:04d}/{month:02d}/{day:02d}"
    return to_persian_digits(rendered) if persian else rendered


def format_jalali_date(value: Union[date, datetime]) -> str:
    """Gregorian date -> "YYYY/MM/DD" in Jalali with Persian digits."""
    jalali = gregorian_to_jalali(value)
    return _render(jalali.year, jalali.month, jalali.day, persian=True)


def format_jalali_date_ascii(value: Union[date, datetime]) -> str:
    """Gregorian date -> "YYYY/MM/DD" in Jalali with ASCII digits."""
    jalali = gregorian_to_jalali(value)
    return _render(jalali.year, jalali.month, jalali.day, persian=False)


def today_jalali() -> str:
    return format_jalali_date_ascii(date.today())


def parse_jalali_date_string(value: Optional[str]) -> Optional[JalaliDate]:
    """
    Parse "YYYY/MM/DD" or "YYYY-MM-DD" with ASCII or Persian digits.

    Day is only checked against 1..31; it is clamped later when the date is
    used for month arithmetic.

    Returns:
        JalaliDate, or None when the string is malformed
    """
    if not value or not isinstance(value, str):
        return None

    normalized = to_ascii_digits(value).replace("-", "/")
    parts = [part.strip() for part in normalized.split("/")]
    if len(parts) != 3 or not all(_NUMERIC_PART.match(part) for part in parts):
        return None

    year, month, day = (int(part) for part in parts)
    if month < 1 or month > 12 or day < 1 or day > 31:
        return None
    return JalaliDate(year=year, month=month, day=day)


def _add_months(value: str, months_to_add: int, persian: bool) -> str:
    parts = parse_jalali_date_string(value)
    if parts is None:
        return value

    carry, month_index = divmod(parts.month - 1 + months_to_add, 12)
    year = parts.year + carry
    month = month_index + 1
    day = min(parts.day, jalali_month_length(year, month))
    return _render(year, month, day, persian=persian)


def add_months_to_jalali_string(value: str, months_to_add: int) -> str:
    """
    Add months to a Jalali date string, clamping the day to the month length.

    Malformed input is returned unchanged.
    """
    return _add_months(value, months_to_add, persian=True)


def add_months_to_jalali_string_ascii(value: str, months_to_add: int) -> str:
    """Same as add_months_to_jalali_string, with ASCII digits for storage."""
    return _add_months(value, months_to_add, persian=False)


def get_installment_due_date_from_agreement(agreement_date: str, installment_number: int) -> str:
    """Due date of an installment: agreement date + installment_number months (ASCII)."""
    return add_months_to_jalali_string_ascii(agreement_date, installment_number)


def format_jalali_date_long(value: str) -> str:
    """
    "1403/01/05" -> "۰۵ فروردین ۱۴۰۳".

    Malformed input is returned unchanged.
    """
    parts = parse_jalali_date_string(value)
    if parts is None:
        return value
    month_name = PERSIAN_MONTH_NAMES[parts.month - 1]
    return f"{to_persian_digits(f'{parts.day:02d}')} {month_name} {to_persian_digits(parts.year)}"


def jalali_sort_key(value: str) -> tuple:
    """Sort key for Jalali strings; malformed values sort last."""
    parts = parse_jalali_date_string(value)
    if parts is None:
        return (1, value)
    return (0, parts)
