"""Natural-language sentence -> validated task draft."""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional

from todoai.api.schemas.ai import TodoDraft, TodoDraftShape
from todoai.core.clock import local_zone
from todoai.core.errors import InvalidInput
from todoai.observability.metrics import log_metric
from todoai.observability.tracing import trace
from todoai.services.completion import CompletionService
from todoai.services.task_rules import DEFAULT_CATEGORY, DEFAULT_TIME, derive_draft, next_week_monday, this_weekday

logger = logging.getLogger(__name__)

MIN_INPUT_LENGTH = 2
MAX_INPUT_LENGTH = 500
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
TITLE_PLACEHOLDER = "Task"
ELLIPSIS = "..."
PRIORITIES = ("high", "medium", "low")
NORMALIZE_TEMPERATURE = 0.3

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_PATTERN = re.compile(r"([01][0-9]|2[0-3]):[0-5][0-9]")
FRIDAY = 4


def validate_input(text: Any) -> str:
    if not text or not isinstance(text, str):
        raise InvalidInput("Natural-language input is required.")
    trimmed = text.strip()
    if not trimmed:
        raise InvalidInput("Input is empty.")
    if len(trimmed) < MIN_INPUT_LENGTH:
        raise InvalidInput(f"Input must be at least {MIN_INPUT_LENGTH} characters.")
    if len(trimmed) > MAX_INPUT_LENGTH:
        raise InvalidInput(f"Input must be at most {MAX_INPUT_LENGTH} characters.")
    return trimmed


def preprocess_input(text: str) -> str:
    """Trim and collapse whitespace; case, punctuation and emoji are kept."""
    return re.sub(r"\s+", " ", text.strip())


def build_prompt(text: str, now: datetime) -> str:
    today = now.date()
    resolved = {
        "today": today,
        "tomorrow": today + timedelta(days=1),
        "day after tomorrow": today + timedelta(days=2),
        "this Friday": this_weekday(today, FRIDAY),
        "next Monday": next_week_monday(today),
    }
    date_rules = "\n".join(f'   - "{phrase}" -> {value.isoformat()}' for phrase, value in resolved.items())

    return f"""Convert the natural-language input below into a to-do item.

Current date: {today.isoformat()} ({today.strftime("%A")})
Current time: {now.strftime("%H:%M")}

Input: "{text}"

Rules:
1. title: the shortest phrase capturing the core action; drop descriptive modifiers.
2. description: extra detail only if the input has some; otherwise omit.
3. due_date (YYYY-MM-DD), resolved against the current date:
{date_rules}
   - Korean equivalents: 오늘, 내일, 모레, 이번 주 금요일, 다음 주 월요일.
   - No date mentioned -> {today.isoformat()}.
4. due_time (24-hour HH:MM):
   - morning/아침/오전 -> 09:00, noon/점심 -> 12:00, afternoon/오후 -> 14:00,
     evening/저녁 -> 18:00, night/밤 -> 21:00.
   - An explicit clock time wins over these words; convert it to 24-hour form (3pm -> 15:00).
   - No time mentioned -> {DEFAULT_TIME}.
5. priority:
   - "high" for urgency words: urgent, important, quickly, must, 급하게, 중요한, 빨리, 꼭, 반드시.
   - "low" for calm words: leisurely, slowly, someday, 여유롭게, 천천히, 언젠가.
   - otherwise "medium", also when ambiguous.
6. category: a list drawn from ["work", "personal", "health", "study"].
   - work: meeting, report, project, 회의, 보고서, 프로젝트, 업무.
   - personal: shopping, friends, family, 쇼핑, 친구, 가족, 개인.
   - health: exercise, hospital, yoga, 운동, 병원, 건강, 요가.
   - study: study, book, lecture, 공부, 책, 강의, 학습.
   - Include every matching label; if none match use ["{DEFAULT_CATEGORY}"].
"""


def _truncate(value: str, limit: int) -> str:
    return value[:limit] + ELLIPSIS if len(value) > limit else value


def _repair_title(value: Any) -> str:
    title = value.strip() if isinstance(value, str) else ""
    if not title:
        return TITLE_PLACEHOLDER
    return _truncate(title, TITLE_MAX_LENGTH)


def _repair_date(value: Any, reference_date: date) -> str:
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        return reference_date.isoformat()
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return reference_date.isoformat()
    # No past-dated tasks from this path.
    if parsed < reference_date:
        return reference_date.isoformat()
    return parsed.isoformat()


def _repair_time(value: Any) -> str:
    if isinstance(value, str) and TIME_PATTERN.fullmatch(value):
        return value
    return DEFAULT_TIME


def _repair_description(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    description = value.strip()
    if not description:
        return None
    return _truncate(description, DESCRIPTION_MAX_LENGTH)


def _repair_priority(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in PRIORITIES:
        return value.strip().lower()
    return "medium"


def _repair_category(value: Any) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return [DEFAULT_CATEGORY]
    return list(value)


def repair_draft(raw: Any, reference_date: date) -> TodoDraft:
    """Force every field of an untrusted draft into range.

    Runs on every draft whatever its source. Already-valid drafts come back
    unchanged.
    """
    fields: Dict[str, Any] = raw if isinstance(raw, dict) else {}
    return TodoDraft(
        title=_repair_title(fields.get("title")),
        description=_repair_description(fields.get("description")),
        due_date=_repair_date(fields.get("due_date"), reference_date),
        due_time=_repair_time(fields.get("due_time")),
        priority=_repair_priority(fields.get("priority")),
        category=_repair_category(fields.get("category")),
    )


def normalize_task(
    text: Any,
    now: datetime,
    completion: Optional[CompletionService] = None,
    zone: Optional[tzinfo] = None,
) -> TodoDraft:
    """Validate, derive and repair a draft for ``text`` relative to ``now``.

    Invalid input fails before any external call. Without a completion service
    the keyword rules in ``task_rules`` derive the draft instead.
    """
    validate_input(text)
    processed = preprocess_input(text)
    local_now = now.astimezone(zone or local_zone())
    reference_date = local_now.date()
    source = "completion" if completion else "rules"

    with trace("todo.normalize", metadata={"input_length": len(processed), "source": source}):
        if completion:
            raw = completion.generate_object(
                build_prompt(processed, local_now),
                TodoDraftShape,
                temperature=NORMALIZE_TEMPERATURE,
            )
        else:
            logger.info("No completion service configured; deriving draft with keyword rules")
            raw = derive_draft(processed, reference_date)

        draft = repair_draft(raw, reference_date)

    repaired = _repaired_fields(raw, draft)
    if repaired:
        logger.debug("Repaired draft fields: %s", ", ".join(repaired))
    log_metric("todo.normalize.repaired_fields", len(repaired), metadata={"source": source})
    return draft


def _repaired_fields(raw: Any, draft: TodoDraft) -> List[str]:
    fields = raw if isinstance(raw, dict) else {}
    return [name for name, value in draft.model_dump().items() if fields.get(name) != value]
