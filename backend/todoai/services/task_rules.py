"""Keyword rules turning a sentence into a task draft without calling a model.

Covers the same vocabulary the completion prompt describes (Korean and
English): relative dates, time-of-day words, explicit clock times, urgency
words and category keywords. Used when no completion service is configured.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Pattern, Tuple

DEFAULT_TIME = "09:00"
DEFAULT_CATEGORY = "personal"

WEEKDAYS_KO = ["월", "화", "수", "목", "금", "토", "일"]
WEEKDAYS_EN = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Longer phrases first so "day after tomorrow" is not read as "tomorrow".
DAY_OFFSETS: List[Tuple[Pattern[str], int]] = [
    (re.compile(r"내일\s*모레|모레"), 2),
    (re.compile(r"\bday after tomorrow\b", re.IGNORECASE), 2),
    (re.compile(r"내일"), 1),
    (re.compile(r"\btomorrow\b", re.IGNORECASE), 1),
    (re.compile(r"오늘"), 0),
    (re.compile(r"\btoday\b", re.IGNORECASE), 0),
]

NEXT_WEEKDAY = re.compile(
    r"다음\s*주\s*(?P<ko>[월화수목금토일])요일|\bnext\s+(?P<en>monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b",
    re.IGNORECASE,
)
THIS_WEEKDAY = re.compile(
    r"(?:이번\s*주\s*)?(?P<ko>[월화수목금토일])요일|\b(?:this\s+)?(?P<en>monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b",
    re.IGNORECASE,
)

KO_CLOCK = re.compile(
    r"(?P<period>오전|오후|아침|저녁|밤|새벽)?\s*(?P<hour>\d{1,2})\s*시(?!간)(?:\s*(?P<minute>\d{1,2})\s*분|\s*(?P<half>반))?(?:에|까지|부터)?"
)
EN_CLOCK = re.compile(r"\b(?:at\s+)?(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>am|pm|a\.m\.|p\.m\.)", re.IGNORECASE)
H24_CLOCK = re.compile(r"\b(?:at\s+)?(?P<hour>[01]?\d|2[0-3]):(?P<minute>[0-5]\d)\b", re.IGNORECASE)

# Checked in order; "afternoon" must win over "noon".
TIME_OF_DAY: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"\bafternoon\b|오후(?:에)?", re.IGNORECASE), "14:00"),
    (re.compile(r"\bmorning\b|(?:아침|오전)(?:에)?", re.IGNORECASE), "09:00"),
    (re.compile(r"\bnoon\b|\blunch\b|(?:점심|정오)(?:에)?", re.IGNORECASE), "12:00"),
    (re.compile(r"\bevening\b|저녁(?:에)?", re.IGNORECASE), "18:00"),
    (re.compile(r"\bnight\b|\btonight\b|밤(?:에)?", re.IGNORECASE), "21:00"),
]

HIGH_PRIORITY = re.compile(
    r"급하게|급한|긴급|중요한|중요|빨리|꼭|반드시|\burgent(?:ly)?\b|\bimportant\b|\basap\b|\bquickly\b|\bmust\b",
    re.IGNORECASE,
)
LOW_PRIORITY = re.compile(r"여유롭게|천천히|언젠가|\bleisurely\b|\bslowly\b|\bsomeday\b", re.IGNORECASE)

CATEGORY_KEYWORDS: Dict[str, Pattern[str]] = {
    "work": re.compile(
        r"회의|보고서|프로젝트|업무|미팅|\bmeeting\b|\breport\b|\bproject\b|\bwork\b|\bclient\b|\bpresentation\b",
        re.IGNORECASE,
    ),
    "personal": re.compile(
        r"쇼핑|친구|가족|개인|장보기|\bshopping\b|\bfriends?\b|\bfamily\b|\bpersonal\b|\bgroceries\b",
        re.IGNORECASE,
    ),
    "health": re.compile(
        r"운동|병원|건강|요가|헬스|\bexercise\b|\bworkout\b|\bgym\b|\bhospital\b|\bdoctor\b|\bhealth\b|\byoga\b",
        re.IGNORECASE,
    ),
    "study": re.compile(
        r"공부|책|강의|학습|시험|\bstudy\b|\bbooks?\b|\blecture\b|\bcourse\b|\blearn(?:ing)?\b|\bexam\b|\bhomework\b",
        re.IGNORECASE,
    ),
}

DANGLING_WORDS = re.compile(r"^(?:at|on|by|in|until|to)\s+|\s+(?:at|on|by|in|until|to)$", re.IGNORECASE)


@dataclass
class _Scan:
    text: str

    def take(self, pattern: Pattern[str]) -> Optional[re.Match]:
        """Find pattern and blank it out so it does not leak into the title."""
        match = pattern.search(self.text)
        if match:
            self.text = self.text[: match.start()] + " " + self.text[match.end():]
        return match


def this_weekday(today: date, weekday: int) -> date:
    """Nearest upcoming occurrence; a week ahead when it is that day already."""
    return today + timedelta(days=(weekday - today.weekday()) % 7 or 7)


def next_week_monday(today: date) -> date:
    return today + timedelta(days=(7 - today.weekday()) % 7 or 7)


def next_weekday(today: date, weekday: int) -> date:
    return next_week_monday(today) + timedelta(days=weekday)


def _weekday_index(match: re.Match) -> int:
    if match.group("ko"):
        return WEEKDAYS_KO.index(match.group("ko"))
    return WEEKDAYS_EN.index(match.group("en").lower())


def _resolve_date(scan: _Scan, today: date) -> date:
    match = scan.take(NEXT_WEEKDAY)
    if match:
        return next_weekday(today, _weekday_index(match))
    for pattern, offset in DAY_OFFSETS:
        if scan.take(pattern):
            return today + timedelta(days=offset)
    match = scan.take(THIS_WEEKDAY)
    if match:
        return this_weekday(today, _weekday_index(match))
    return today


def _ko_hour(period: Optional[str], hour: int) -> int:
    if period in ("오후", "저녁", "밤") and hour < 12:
        return hour + 12
    if period in ("오전", "새벽", "아침", "저녁", "밤") and hour == 12:
        return 0
    return hour


def _resolve_time(scan: _Scan) -> str:
    match = scan.take(KO_CLOCK)
    if match and int(match.group("hour")) <= 24:
        hour = _ko_hour(match.group("period"), int(match.group("hour"))) % 24
        minute = 30 if match.group("half") else int(match.group("minute") or 0)
        if minute < 60:
            return f"{hour:02d}:{minute:02d}"

    match = scan.take(EN_CLOCK)
    if match and 1 <= int(match.group("hour")) <= 12:
        hour = int(match.group("hour")) % 12
        if match.group("meridiem").lower().startswith("p"):
            hour += 12
        minute = int(match.group("minute") or 0)
        if minute < 60:
            return f"{hour:02d}:{minute:02d}"

    match = scan.take(H24_CLOCK)
    if match:
        return f"{int(match.group('hour')):02d}:{match.group('minute')}"

    for pattern, clock in TIME_OF_DAY:
        if scan.take(pattern):
            return clock
    return DEFAULT_TIME


def _resolve_priority(scan: _Scan) -> str:
    if scan.take(HIGH_PRIORITY):
        return "high"
    if scan.take(LOW_PRIORITY):
        return "low"
    return "medium"


def infer_categories(text: str) -> List[str]:
    labels = [label for label, pattern in CATEGORY_KEYWORDS.items() if pattern.search(text)]
    return labels or [DEFAULT_CATEGORY]


def _clean_title(text: str, fallback: str) -> str:
    title = re.sub(r"\s+", " ", text).strip(" ,.;:!-")
    previous = None
    while title and title != previous:
        previous = title
        title = DANGLING_WORDS.sub("", title).strip(" ,.;:!-")
    return title or fallback


def derive_draft(text: str, today: date) -> Dict[str, object]:
    """Apply the keyword rules to already-preprocessed text."""
    scan = _Scan(text)
    due_date = _resolve_date(scan, today)
    due_time = _resolve_time(scan)
    priority = _resolve_priority(scan)
    return {
        "title": _clean_title(scan.text, text),
        "description": None,
        "due_date": due_date.isoformat(),
        "due_time": due_time,
        "priority": priority,
        "category": infer_categories(text),
    }
