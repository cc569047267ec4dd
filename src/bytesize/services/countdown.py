"""Local answers for date arithmetic the model must never guess at."""

from __future__ import annotations

import logging
import math
import re
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"20\d{2}")
_MS_PER_DAY = 1000 * 60 * 60 * 24


def resolve_effective_time(client_date: str | None, now: datetime | None = None) -> datetime:
    """Return the client's timestamp if it parses, else the current UTC time.

    Naive timestamps are taken to be UTC.
    """
    if client_date:
        try:
            parsed = datetime.fromisoformat(client_date.strip())
        except ValueError:
            logger.warning("Ignoring unparseable clientDate %r", client_date)
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    current = now or datetime.now(UTC)
    return current if current.tzinfo else current.replace(tzinfo=UTC)


def iso_date(moment: datetime) -> str:
    """ISO calendar date of ``moment`` in its own timezone."""
    return moment.date().isoformat()


def is_christmas_question(prompt: str) -> bool:
    lower = prompt.lower()
    return "how many days" in lower and "christmas" in lower


def christmas_countdown(prompt: str, now: datetime) -> str | None:
    """Answer "how many days until christmas" locally, or return None.

    The target is Dec 25 00:00 in the same timezone as ``now``. With no year
    in the prompt, this year's Christmas is used unless it has already
    passed. The result never goes below zero.
    """
    if not is_christmas_question(prompt):
        return None

    match = _YEAR_RE.search(prompt.lower())
    if match:
        target_year = int(match.group(0))
    else:
        target_year = now.year
        if datetime(target_year, 12, 25, tzinfo=now.tzinfo) < now:
            target_year += 1

    target = datetime(target_year, 12, 25, tzinfo=now.tzinfo)
    diff_ms = (target - now).total_seconds() * 1000
    days = max(0, math.ceil(diff_ms / _MS_PER_DAY))
    today = iso_date(now)

    logger.info(
        "Christmas override used. Today=%s, targetYear=%s, days=%s", today, target_year, days
    )
    return f"There are {days} days until Christmas {target_year}. (Based on current date {today})"
