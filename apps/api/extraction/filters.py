"""
Question Filter Extraction
==========================

Deterministic passes that pull selection filters out of a chat question:

- game numbers:    "game 3", "games 2-4", "games 1 to 3", "game 2, 3 and 4"
- session numbers: same grammar under "session"
- session names:   whole-word, case-insensitive, longest name first
- sessionless:     "sessionless", "no session", "without a session", ...
- frame numbers:   "frame 9", "frames 1, 2", "frames 8-10" (1..10 only)
- dates:           "March 3", "sept 14th", "Jan 2, 2025"
- time of day:     "before 7pm", "after 11:30 pm", "after 18:00"

Every pass is total: malformed text yields "no filter", never an exception.
Each pass is independent; extract_filters() composes them.
"""

import re
import logging
from dataclasses import dataclass, field
import datetime as dt
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# TYPES
# =============================================================================

@dataclass(frozen=True)
class TimeFilter:
    """
    Date / time-of-day constraint.

    Local form (is_utc=False) comes straight from the question. The time
    normalizer produces the UTC form: utc_start (inclusive) / utc_end
    (exclusive) bounds plus minute-of-day bounds in UTC.
    """
    date: Optional[dt.date] = None
    range_start: Optional[dt.date] = None
    range_end: Optional[dt.date] = None
    before_minutes: Optional[int] = None
    after_minutes: Optional[int] = None
    utc_start: Optional[dt.datetime] = None
    utc_end: Optional[dt.datetime] = None
    is_utc: bool = False

    @property
    def has_time_clause(self) -> bool:
        return self.before_minutes is not None or self.after_minutes is not None

    @property
    def is_empty(self) -> bool:
        return (
            self.date is None
            and self.range_start is None
            and self.range_end is None
            and not self.has_time_clause
            and self.utc_start is None
            and self.utc_end is None
        )

    def to_dict(self) -> dict:
        """JSON-friendly form for prompts."""
        def _iso(value):
            return value.isoformat() if value is not None else None

        body = {
            "date": _iso(self.date),
            "rangeStart": _iso(self.range_start),
            "rangeEnd": _iso(self.range_end),
            "beforeMinutes": self.before_minutes,
            "afterMinutes": self.after_minutes,
            "utcDateStart": _iso(self.utc_start),
            "utcDateEnd": _iso(self.utc_end),
        }
        return {key: value for key, value in body.items() if value is not None}


@dataclass(frozen=True)
class ExtractedFilters:
    """Everything the extractor found in one question."""
    game_numbers: List[int] = field(default_factory=list)
    session_numbers: List[int] = field(default_factory=list)
    session_names: List[str] = field(default_factory=list)
    sessionless: bool = False
    frame_numbers: List[int] = field(default_factory=list)
    time_filter: TimeFilter = field(default_factory=TimeFilter)

    @property
    def has_session_filter(self) -> bool:
        return bool(self.session_numbers or self.session_names or self.sessionless)


# =============================================================================
# NUMBER LISTS (games / sessions / frames)
# =============================================================================

# "games 90-1000000" should not allocate a million ints
MAX_RANGE_SPAN = 1000

_RANGE_SEPARATOR = r"(?:-|–|to|through|thru)"
_LIST_JOINER = r"(?:\s*,\s*(?:and\s+|&\s*)?|\s+and\s+|\s*&\s*)"
_ITEM = rf"\d+(?:\s*{_RANGE_SEPARATOR}\s*\d+)?"
_ITEM_RE = re.compile(rf"(\d+)(?:\s*{_RANGE_SEPARATOR}\s*(\d+))?", re.IGNORECASE)


def _list_pattern(noun: str) -> re.Pattern:
    # Items are single numbers or ranges: "games 1, 3", "games 2-4 and 6"
    return re.compile(
        rf"\b{noun}s?\s*#?\s*({_ITEM}(?:{_LIST_JOINER}{_ITEM})*)\b",
        re.IGNORECASE,
    )


_PATTERNS = {
    noun: _list_pattern(noun)
    for noun in ("game", "session", "frame")
}


def _extract_numbers(question: str, noun: str) -> List[int]:
    """Collect numbers referenced under `noun` (ranges, lists, singles)."""
    if not question:
        return []

    numbers = set()

    for match in _PATTERNS[noun].finditer(question):
        for item in _ITEM_RE.finditer(match.group(1)):
            start = int(item.group(1))
            if item.group(2) is None:
                numbers.add(start)
                continue
            end = int(item.group(2))
            low, high = min(start, end), max(start, end)
            high = min(high, low + MAX_RANGE_SPAN - 1)
            numbers.update(range(low, high + 1))

    return sorted(numbers)


def extract_game_numbers(question: str) -> List[int]:
    """Game numbers mentioned in the question, deduplicated ascending."""
    return [n for n in _extract_numbers(question, "game") if n > 0]


def extract_session_numbers(question: str) -> List[int]:
    """Session numbers mentioned in the question, deduplicated ascending."""
    return [n for n in _extract_numbers(question, "session") if n > 0]


def extract_frame_numbers(question: str) -> List[int]:
    """Frame numbers in 1..10. Anything outside the domain is dropped."""
    return [n for n in _extract_numbers(question, "frame") if 1 <= n <= 10]


# =============================================================================
# SESSION NAMES
# =============================================================================

SESSIONLESS_PHRASES = (
    "sessionless",
    "no session",
    "no sessions",
    "without session",
    "without a session",
    "outside a session",
)


def extract_session_name_matches(question: str, names: Sequence[str]) -> List[str]:
    """
    Session names that appear in the question as whole words.

    Longest names are tried first and claim their span, so "League" does not
    also match inside an already matched "Tuesday League".
    """
    if not question or not names:
        return []

    ordered: List[str] = []
    seen = set()
    for name in names:
        trimmed = (name or "").strip()
        if trimmed and trimmed.lower() not in seen:
            seen.add(trimmed.lower())
            ordered.append(trimmed)
    ordered.sort(key=len, reverse=True)

    claimed: List[Tuple[int, int]] = []
    matches: List[str] = []
    for name in ordered:
        pattern = re.compile(rf"(?<!\w){re.escape(name)}(?!\w)", re.IGNORECASE)
        for match in pattern.finditer(question):
            start, end = match.span()
            if any(start < c_end and c_start < end for c_start, c_end in claimed):
                continue
            claimed.append((start, end))
            matches.append(name)
            break

    return matches


def mentions_sessionless(question: str) -> bool:
    lowered = (question or "").lower()
    return any(phrase in lowered for phrase in SESSIONLESS_PHRASES)


# =============================================================================
# DATES
# =============================================================================

MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_DATE_RE = re.compile(
    r"\b(" + "|".join(sorted(MONTHS, key=len, reverse=True)) + r")\b\.?\s+"
    r"(\d{1,2})(st|nd|rd|th)?\b(?:,?\s*(\d{4})\b)?",
    re.IGNORECASE,
)

_ON_BEFORE_RE = re.compile(r"\bon\s*$", re.IGNORECASE)

_TIME_RE = re.compile(
    r"\b(before|after)\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b",
    re.IGNORECASE,
)


def _is_may_date(question: str, match: re.Match) -> bool:
    """Lowercase "may 3" is usually the verb. Needs "May", a day suffix, a year or a leading "on"."""
    if match.group(1) == "May" or match.group(3) or match.group(4):
        return True
    return bool(_ON_BEFORE_RE.search(question[:match.start()]))


def extract_dates(question: str, today: Optional[dt.date] = None) -> List[dt.date]:
    """
    Month-name dates in order of appearance.

    Year defaults to today's year. Impossible calendar dates (Feb 30) are
    dropped.
    """
    if not question:
        return []
    default_year = (today or dt.date.today()).year

    dates: List[dt.date] = []
    for match in _DATE_RE.finditer(question):
        word = match.group(1)
        if word.lower() == "may" and not _is_may_date(question, match):
            continue
        month = MONTHS.get(word.lower())
        day = int(match.group(2))
        year = int(match.group(4)) if match.group(4) else default_year
        if month is None or not 1 <= day <= 31:
            continue
        try:
            dates.append(dt.date(year, month, day))
        except ValueError:
            logger.debug(f"[Filters] Dropping invalid date {match.group(0)!r}")
    return dates


def parse_time_to_minutes(hour: int, minute: int, meridiem: Optional[str] = None) -> int:
    """12/24-hour clock to minutes past midnight."""
    if meridiem:
        meridiem = meridiem.lower()
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
    return hour * 60 + minute


def extract_time_filter(question: str, today: Optional[dt.date] = None) -> TimeFilter:
    """
    Local date/time constraint.

    One date -> `date`. Two or more -> inclusive range over the first two,
    earliest first. A single before/after clause adds a minute-of-day bound;
    an out-of-range hour or minute drops that clause only.
    """
    dates = extract_dates(question, today=today)
    single: Optional[dt.date] = None
    range_start: Optional[dt.date] = None
    range_end: Optional[dt.date] = None
    if len(dates) >= 2:
        range_start, range_end = sorted(dates[:2])
    elif dates:
        single = dates[0]

    before: Optional[int] = None
    after: Optional[int] = None
    match = _TIME_RE.search(question or "")
    if match:
        hour = int(match.group(2))
        minute = int(match.group(3)) if match.group(3) else 0
        if 0 <= hour <= 23 and 0 <= minute <= 59:
            minutes = parse_time_to_minutes(hour, minute, match.group(4))
            if match.group(1).lower() == "before":
                before = minutes
            else:
                after = minutes
        else:
            logger.debug(f"[Filters] Ignoring invalid time clause {match.group(0)!r}")

    return TimeFilter(
        date=single,
        range_start=range_start,
        range_end=range_end,
        before_minutes=before,
        after_minutes=after,
    )


# =============================================================================
# COMPOSITION
# =============================================================================

def extract_filters(
    question: str,
    session_names: Sequence[str] = (),
    today: Optional[dt.date] = None,
) -> ExtractedFilters:
    """Run every pass over one question."""
    return ExtractedFilters(
        game_numbers=extract_game_numbers(question),
        session_numbers=extract_session_numbers(question),
        session_names=extract_session_name_matches(question, session_names),
        sessionless=mentions_sessionless(question),
        frame_numbers=extract_frame_numbers(question),
        time_filter=extract_time_filter(question, today=today),
    )
