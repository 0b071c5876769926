"""Tests for the keyword rules used when no completion service is configured."""
from __future__ import annotations

from datetime import date

import pytest

from todoai.services.task_rules import derive_draft, infer_categories, next_week_monday, next_weekday, this_weekday

SUNDAY = date(2025, 6, 1)
WEDNESDAY = date(2025, 6, 4)
FRIDAY = date(2025, 6, 6)


def test_korean_meeting_sentence() -> None:
    draft = derive_draft("내일 오전 10시에 팀 회의 준비", SUNDAY)

    assert draft == {
        "title": "팀 회의 준비",
        "description": None,
        "due_date": "2025-06-02",
        "due_time": "10:00",
        "priority": "medium",
        "category": ["work"],
    }


def test_english_sentence_with_clock_and_urgency() -> None:
    draft = derive_draft("Submit the report by 3pm tomorrow urgently", WEDNESDAY)

    assert draft["title"] == "Submit the report"
    assert draft["due_date"] == "2025-06-05"
    assert draft["due_time"] == "15:00"
    assert draft["priority"] == "high"
    assert draft["category"] == ["work"]


def test_next_week_weekday_and_evening() -> None:
    draft = derive_draft("다음 주 월요일 저녁에 운동하기", WEDNESDAY)

    assert draft["title"] == "운동하기"
    assert draft["due_date"] == "2025-06-09"
    assert draft["due_time"] == "18:00"
    assert draft["category"] == ["health"]


def test_day_after_tomorrow_is_not_read_as_tomorrow() -> None:
    assert derive_draft("모레 친구 만나기", SUNDAY)["due_date"] == "2025-06-03"
    assert derive_draft("call mom the day after tomorrow", SUNDAY)["due_date"] == "2025-06-03"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("오후 3시 30분 병원 예약", "15:30"),
        ("저녁 7시 반 저녁 약속", "19:30"),
        ("밤 12시에 빨래 걷기", "00:00"),
        ("저녁 12시 알람", "00:00"),
        ("오후 12시 점심 약속", "12:00"),
        ("afternoon meeting with the client", "14:00"),
        ("lunch with friends", "12:00"),
        ("at 14:30 team sync", "14:30"),
        ("buy groceries tonight", "21:00"),
        ("water the plants", "09:00"),
    ],
)
def test_time_resolution(text: str, expected: str) -> None:
    assert derive_draft(text, WEDNESDAY)["due_time"] == expected


def test_missing_date_defaults_to_today() -> None:
    assert derive_draft("water the plants", WEDNESDAY)["due_date"] == "2025-06-04"


def test_low_priority_words() -> None:
    draft = derive_draft("Read a book slowly someday", WEDNESDAY)

    assert draft["priority"] == "low"
    assert draft["category"] == ["study"]


def test_categories_keep_every_match_and_default_to_personal() -> None:
    assert infer_categories("Go to the gym and study for the exam") == ["health", "study"]
    assert infer_categories("water the plants") == ["personal"]


def test_weekday_arithmetic() -> None:
    # Same weekday means a week ahead.
    assert this_weekday(FRIDAY, 4) == date(2025, 6, 13)
    assert this_weekday(WEDNESDAY, 4) == date(2025, 6, 6)
    assert next_week_monday(date(2025, 6, 2)) == date(2025, 6, 9)
    assert next_week_monday(SUNDAY) == date(2025, 6, 2)
    assert next_weekday(WEDNESDAY, 2) == date(2025, 6, 11)
