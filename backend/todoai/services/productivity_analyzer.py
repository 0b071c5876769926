"""Productivity statistics over a task list plus a narrative summary."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from todoai.api.schemas.ai import AnalysisResult, AnalysisTodo
from todoai.core.clock import ensure_aware, from_client, local_zone
from todoai.core.errors import InvalidInput, NothingToAnalyze, ServiceError
from todoai.db.models.task import Task
from todoai.observability.metrics import log_metric
from todoai.observability.tracing import trace
from todoai.services.completion import CompletionService

logger = logging.getLogger(__name__)

PERIODS = ("today", "week")
PRIORITIES = ("high", "medium", "low")
TIME_SLOTS = ("morning", "afternoon", "evening")
WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
ANALYZE_TEMPERATURE = 0.4
MAX_URGENT_TASKS = 5


@dataclass
class Bucket:
    total: int = 0
    completed: int = 0

    @property
    def incomplete(self) -> int:
        return self.total - self.completed

    @property
    def rate(self) -> float:
        """Completion percentage; 0 for an empty bucket."""
        return (self.completed / self.total) * 100 if self.total else 0.0

    def add(self, completed: bool) -> None:
        self.total += 1
        if completed:
            self.completed += 1


@dataclass
class TaskStatistics:
    period: str
    overall: Bucket
    by_priority: Dict[str, Bucket]
    by_category: Dict[str, Bucket]
    by_time_slot: Dict[str, Bucket]
    # Filled for the weekly period only.
    by_weekday: Dict[str, Bucket]
    overdue: List[AnalysisTodo] = field(default_factory=list)
    on_time: Bucket = field(default_factory=Bucket)
    most_productive_slot: str = TIME_SLOTS[0]
    deferral_ratio: float = 0.0

    @property
    def total(self) -> int:
        return self.overall.total

    @property
    def completed(self) -> int:
        return self.overall.completed

    @property
    def incomplete(self) -> int:
        return self.overall.incomplete

    @property
    def completion_rate(self) -> float:
        return self.overall.rate

    @property
    def overdue_count(self) -> int:
        return len(self.overdue)

    @property
    def most_productive_rate(self) -> float:
        return self.by_time_slot[self.most_productive_slot].rate


def validate_request(todos: Any, period: Any, zone: Optional[tzinfo] = None) -> List[AnalysisTodo]:
    """Check the request and read naive timestamps as wall-clock time in ``zone``."""
    if todos is None or not isinstance(todos, list):
        raise InvalidInput("A task list is required.")
    if period not in PERIODS:
        raise InvalidInput("Analysis period must be 'today' or 'week'.")
    try:
        items = [AnalysisTodo.model_validate(item) for item in todos]
    except ValidationError as exc:
        raise InvalidInput("Every task needs a title and well-formed fields.", detail=str(exc)) from exc
    return [
        item.model_copy(
            update={
                "due_date": from_client(item.due_date, zone),
                "completed_at": from_client(item.completed_at, zone),
            }
        )
        for item in items
    ]


def to_analysis_todo(task: Task) -> AnalysisTodo:
    return AnalysisTodo(
        id=task.id,
        title=task.title,
        description=task.description,
        due_date=ensure_aware(task.due_date),
        priority=task.priority,
        category=list(task.category or []),
        completed=bool(task.completed),
        completed_at=ensure_aware(task.completed_at),
    )


def time_slot(hour: int) -> str:
    if hour < 12:
        return "morning"
    if hour < 18:
        return "afternoon"
    return "evening"


def period_window(period: str, now: datetime, zone: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
    """[start, end) of today, or of the Monday-based week containing now."""
    zone = zone or local_zone()
    local_now = now.astimezone(zone)
    start_of_day = datetime.combine(local_now.date(), time.min, tzinfo=zone)
    if period == "today":
        return start_of_day, start_of_day + timedelta(days=1)
    monday = start_of_day - timedelta(days=local_now.weekday())
    return monday, monday + timedelta(days=7)


def select_period(tasks: Iterable[Any], period: str, now: datetime, zone: Optional[tzinfo] = None) -> List[Any]:
    """Keep tasks due inside the period window; undated tasks are left out."""
    start, end = period_window(period, now, zone)
    selected = []
    for task in tasks:
        due = ensure_aware(task.due_date)
        if due and start <= due < end:
            selected.append(task)
    return selected


def compute_statistics(
    todos: Sequence[AnalysisTodo],
    period: str,
    now: datetime,
    zone: Optional[tzinfo] = None,
) -> TaskStatistics:
    zone = zone or local_zone()
    stats = TaskStatistics(
        period=period,
        overall=Bucket(),
        by_priority={name: Bucket() for name in PRIORITIES},
        by_category={},
        by_time_slot={name: Bucket() for name in TIME_SLOTS},
        by_weekday={name: Bucket() for name in WEEKDAYS} if period == "week" else {},
    )

    for todo in todos:
        stats.overall.add(todo.completed)
        priority = todo.priority if todo.priority in PRIORITIES else "medium"
        stats.by_priority[priority].add(todo.completed)
        for label in todo.category or []:
            stats.by_category.setdefault(label, Bucket()).add(todo.completed)

        due = ensure_aware(todo.due_date)
        if due is None:
            continue
        local_due = due.astimezone(zone)
        stats.by_time_slot[time_slot(local_due.hour)].add(todo.completed)
        if stats.by_weekday:
            stats.by_weekday[WEEKDAYS[local_due.weekday()]].add(todo.completed)

        if not todo.completed and due < now:
            stats.overdue.append(todo)
        if todo.completed:
            # Without a recorded completion time the analysis instant stands in.
            finished = ensure_aware(todo.completed_at) or now
            stats.on_time.add(finished <= due)

    best_rate = -1.0
    for name in TIME_SLOTS:
        if stats.by_time_slot[name].rate > best_rate:
            best_rate = stats.by_time_slot[name].rate
            stats.most_productive_slot = name

    high_incomplete = stats.by_priority["high"].incomplete
    stats.deferral_ratio = high_incomplete / (stats.incomplete or 1)
    return stats


def _bucket_line(label: str, bucket: Bucket) -> str:
    return f"- {label}: {bucket.completed} of {bucket.total} completed ({bucket.rate:.1f}%)"


def build_prompt(stats: TaskStatistics, todos: Sequence[AnalysisTodo], now: datetime, zone: Optional[tzinfo] = None) -> str:
    zone = zone or local_zone()
    start, end = period_window(stats.period, now, zone)
    if stats.period == "today":
        heading = f"Focused analysis of today ({start.date().isoformat()})"
        summary_hint = "Summarise today's focus and what is left, by priority."
        closing_hint = "Tell the user what to prioritise for the rest of today."
    else:
        heading = f"Weekly pattern analysis ({start.date().isoformat()} ~ {(end - timedelta(days=1)).date().isoformat()})"
        summary_hint = "Summarise the week's completion rate and main patterns."
        closing_hint = "Suggest a plan for next week based on this week's patterns."

    categories = "\n".join(_bucket_line(name, bucket) for name, bucket in stats.by_category.items()) or "- uncategorised"
    weekdays = ""
    if stats.by_weekday:
        weekdays = "By weekday:\n" + "\n".join(_bucket_line(name, bucket) for name, bucket in stats.by_weekday.items())

    overdue_titles = [todo.title for todo in stats.overdue[:MAX_URGENT_TASKS]]
    if overdue_titles:
        more = " and more" if stats.overdue_count > MAX_URGENT_TASKS else ""
        overdue_line = f"  - {', '.join(overdue_titles)}{more}"
    else:
        overdue_line = "  - nothing overdue"

    productive_line = ""
    if stats.most_productive_rate > 0:
        productive_line = (
            f"- Most productive time slot: {stats.most_productive_slot} "
            f"({stats.most_productive_rate:.1f}% completed)\n"
        )
    deferral_note = " (important work tends to be put off)" if stats.deferral_ratio > 0.5 else ""

    overdue_ids = {id(todo) for todo in stats.overdue}
    listing = []
    for index, todo in enumerate(todos, start=1):
        state = "done" if todo.completed else "open"
        labels = ", ".join(todo.category or []) or "none"
        if todo.due_date:
            due_text = f"due {ensure_aware(todo.due_date).astimezone(zone).strftime('%Y-%m-%d %H:%M')}"
            if id(todo) in overdue_ids:
                due_text += " [overdue]"
        else:
            due_text = "no due date"
        listing.append(f"{index}. [{state}] {todo.title} (priority: {todo.priority}, categories: {labels}, {due_text})")

    slots = stats.by_time_slot
    return f"""[{heading}] Analyse this to-do list and give encouraging, concrete advice.

== Totals ==
- Tasks: {stats.total}
- Completed: {stats.completed}
- Incomplete: {stats.incomplete}
- Completion rate: {stats.completion_rate:.1f}%

== Completion by priority ==
{_bucket_line("high", stats.by_priority["high"])}
{_bucket_line("medium", stats.by_priority["medium"])}
{_bucket_line("low", stats.by_priority["low"])}

== Completion by category ==
{categories}

{weekdays}

== Time management ==
- On-time completion: {stats.on_time.completed} of {stats.on_time.total} ({stats.on_time.rate:.1f}%)
- Overdue tasks: {stats.overdue_count}
{overdue_line}
{_bucket_line("morning (00:00-11:59)", slots["morning"])}
{_bucket_line("afternoon (12:00-17:59)", slots["afternoon"])}
{_bucket_line("evening (18:00-23:59)", slots["evening"])}

== Productivity patterns ==
{productive_line}- Deferral: {stats.deferral_ratio * 100:.1f}% of incomplete tasks are high priority{deferral_note}

== Tasks ==
{chr(10).join(listing)}

== What to return ==
- summary: 1-2 sentences. {summary_hint}
- urgentTasks: up to 5 titles of overdue or imminent incomplete tasks, most urgent first.
- insights: 3-5 one-sentence observations grounded in the numbers above
  (priority patterns, categories, time slots, deadlines, deferral).
- recommendations: 3-5 specific, actionable one-sentence suggestions. {closing_hint}
  Keep a positive tone and praise what is going well.
"""


def _urgent_titles(todos: Sequence[AnalysisTodo], stats: TaskStatistics) -> List[str]:
    open_high = sorted(
        (todo for todo in todos if not todo.completed and todo.priority == "high"),
        key=lambda todo: (ensure_aware(todo.due_date) is None, ensure_aware(todo.due_date) or datetime.max),
    )
    titles: List[str] = []
    for todo in [*stats.overdue, *open_high]:
        if todo.title not in titles:
            titles.append(todo.title)
    return titles[:MAX_URGENT_TASKS]


def fallback_analysis(stats: TaskStatistics, todos: Sequence[AnalysisTodo]) -> AnalysisResult:
    """Deterministic narrative used when no completion service is configured."""
    label = "Today" if stats.period == "today" else "This week"
    summary = f"{label} you completed {stats.completed} of {stats.total} tasks ({stats.completion_rate:.1f}%)."
    if stats.overdue_count:
        summary += f" {stats.overdue_count} task(s) are past due."

    best_priority = max(PRIORITIES, key=lambda name: stats.by_priority[name].rate)
    insights = [
        f"{best_priority.capitalize()} priority tasks have the best completion rate "
        f"({stats.by_priority[best_priority].rate:.1f}%).",
        f"Your {stats.most_productive_slot} tasks are completed most often "
        f"({stats.most_productive_rate:.1f}%).",
    ]
    if stats.overdue_count:
        insights.append(f"{stats.overdue_count} incomplete task(s) have slipped past their due time.")
    else:
        insights.append("Nothing is overdue, deadlines are being kept.")
    if stats.by_category:
        top = max(stats.by_category.items(), key=lambda item: item[1].total)
        insights.append(f"Most tasks are in '{top[0]}' ({top[1].completed} of {top[1].total} completed).")

    recommendations = []
    if stats.deferral_ratio > 0.5:
        recommendations.append("Start with your open high-priority tasks before picking up smaller ones.")
    if stats.overdue_count:
        recommendations.append("Reschedule overdue tasks to a realistic time instead of carrying them forward.")
    recommendations.append(f"Plan demanding work for the {stats.most_productive_slot}, when you finish the most.")
    recommendations.append("Break large tasks into steps you can finish in under an hour.")
    recommendations.append("Keep going, every completed task builds momentum.")

    return AnalysisResult(
        summary=summary,
        urgent_tasks=_urgent_titles(todos, stats),
        insights=insights[:5],
        recommendations=recommendations[:5],
    )


def analyze_tasks(
    todos: Any,
    period: Any,
    now: datetime,
    completion: Optional[CompletionService] = None,
    zone: Optional[tzinfo] = None,
) -> AnalysisResult:
    """Validate, compute statistics and obtain the narrative for a task list.

    An empty list raises NothingToAnalyze without contacting the completion
    service. The service's reply is only checked against the output shape.
    """
    items = validate_request(todos, period, zone)
    if not items:
        raise NothingToAnalyze()

    stats = compute_statistics(items, period, now, zone)
    log_metric("todo.analyze.task_count", stats.total, metadata={"period": period})

    with trace(
        "todo.analyze",
        metadata={
            "period": period,
            "total": stats.total,
            "completion_rate": round(stats.completion_rate, 1),
            "overdue": stats.overdue_count,
            "source": "completion" if completion else "rules",
        },
    ):
        if not completion:
            logger.info("No completion service configured; building analysis from statistics")
            return fallback_analysis(stats, items)

        payload = completion.generate_object(
            build_prompt(stats, items, now, zone),
            AnalysisResult,
            temperature=ANALYZE_TEMPERATURE,
        )
        try:
            return AnalysisResult.model_validate(payload)
        except ValidationError as exc:
            raise ServiceError(detail=f"analysis did not match the expected shape: {exc}") from exc
