"""Relative date expressions for the naturalDate() value function."""

import datetime
import re

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_SEPARATORS = re.compile(r"[_+\-]+")
_AMOUNT_UNIT = re.compile(
    r"^(?:(?P<in>in) )?(?P<amount>\d+|an?) (?P<unit>[a-z]+?)s?(?: (?P<dir>ago|from now))?$"
)
_NEXT_LAST = re.compile(r"^(?P<dir>next|last) (?P<unit>[a-z]+)$")

_UNITS = {
    "second": "seconds",
    "sec": "seconds",
    "minute": "minutes",
    "min": "minutes",
    "hour": "hours",
    "day": "days",
    "week": "weeks",
    "month": "months",
    "year": "years",
}


def _delta(unit: str, amount: int) -> relativedelta:
    try:
        return relativedelta(**{_UNITS[unit]: amount})
    except KeyError:
        raise ValueError(f"unknown time unit '{unit}'") from None


def parse_natural_date(expression: str, now: datetime.datetime | None = None) -> datetime.datetime:
    """
    Evaluate a relative date expression against the current time.

    Words may be separated by '_', '-' or '+', since value function
    arguments cannot contain whitespace: '3_days_ago', 'in_2_weeks',
    'next_month', 'yesterday'. Anything else is handed to dateutil as an
    absolute date.

    Args:
        expression: Expression to evaluate
        now: Reference time (defaults to the current UTC time)

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the expression cannot be understood
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)

    text = _SEPARATORS.sub(" ", expression.strip().lower()).strip()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if text == "now":
        return now
    if text == "today":
        return midnight
    if text == "tomorrow":
        return midnight + relativedelta(days=1)
    if text == "yesterday":
        return midnight - relativedelta(days=1)

    match = _AMOUNT_UNIT.match(text)
    if match and (match.group("in") is None) != (match.group("dir") is None):
        amount = 1 if match.group("amount") in ("a", "an") else int(match.group("amount"))
        delta = _delta(match.group("unit"), amount)
        return now - delta if match.group("dir") == "ago" else now + delta

    match = _NEXT_LAST.match(text)
    if match:
        delta = _delta(match.group("unit"), 1)
        return now + delta if match.group("dir") == "next" else now - delta

    # Absolute dates keep the caller's time zone when none is given.
    try:
        parsed = date_parser.parse(expression)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"cannot understand date expression '{expression}'") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=now.tzinfo)
    return parsed


def natural_date(expression: str, now: datetime.datetime | None = None) -> str:
    """Evaluate a relative date expression and render it as ISO 8601."""
    return parse_natural_date(expression, now).isoformat()
