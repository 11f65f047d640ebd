"""Keyword classifier that turns inbound WhatsApp messages into tasks."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from ulid import ULID
from src.models.task import Task, TaskCategory, TaskPriority, DEFAULT_TASK_STATUS


SCHEDULING_KEYWORDS = (
    "schedule", "interview", "meeting", "appointment", "slot",
    "available", "when can", "time", "date", "reschedule",
)
FOLLOW_UP_KEYWORDS = (
    "follow up", "update", "status", "any news", "heard back",
    "progress", "waiting", "pending", "check",
)
STATUS_UPDATE_KEYWORDS = (
    "result", "outcome", "feedback", "decision", "next step",
    "what happened", "how did", "passed", "failed",
)

MAX_DESCRIPTION_LENGTH = 100
ELLIPSIS = "..."


@dataclass(frozen=True)
class MessageSignals:
    """Independent task signals detected in a message."""
    has_question: bool
    is_scheduling: bool
    is_follow_up: bool
    is_status_update: bool

    @property
    def any(self) -> bool:
        return self.has_question or self.is_scheduling or self.is_follow_up or self.is_status_update


def _contains_any(lowered: str, keywords: tuple[str, ...]) -> bool:
    # Plain substring match: "dated" matches "date"
    return any(keyword in lowered for keyword in keywords)


def detect_signals(message: str) -> MessageSignals:
    """Compute the four keyword signals for a message (case-insensitive)."""
    lowered = message.lower()
    return MessageSignals(
        has_question="?" in message,
        is_scheduling=_contains_any(lowered, SCHEDULING_KEYWORDS),
        is_follow_up=_contains_any(lowered, FOLLOW_UP_KEYWORDS),
        is_status_update=_contains_any(lowered, STATUS_UPDATE_KEYWORDS),
    )


def categorize(signals: MessageSignals) -> tuple[TaskCategory, TaskPriority]:
    """
    Pick category and priority by precedence.

    scheduling > follow-up > status-update > general; only scheduling is high priority.
    """
    if signals.is_scheduling:
        return TaskCategory.SCHEDULING, TaskPriority.HIGH
    if signals.is_follow_up:
        return TaskCategory.FOLLOW_UP, TaskPriority.MEDIUM
    if signals.is_status_update:
        return TaskCategory.STATUS_UPDATE, TaskPriority.MEDIUM
    return TaskCategory.GENERAL, TaskPriority.MEDIUM


def build_task_description(message: str) -> str:
    """Return the message, truncated to 100 characters plus '...' when longer.

    Length is counted in code points, so emoji and other astral characters
    count once and are never cut in half.
    """
    if len(message) > MAX_DESCRIPTION_LENGTH:
        return message[:MAX_DESCRIPTION_LENGTH] + ELLIPSIS
    return message


def generate_task_id() -> str:
    """Generate a text-based task ID (ULID format)."""
    return str(ULID())


def classify_message(message: str, sender_name: str, sender_number: str) -> Optional[Task]:
    """
    Classify a message and build a task from it.

    Returns None when the message has no question mark and matches no keyword set.
    """
    signals = detect_signals(message)
    if not signals.any:
        return None

    category, priority = categorize(signals)

    return Task(
        id=generate_task_id(),
        candidate_name=sender_name,
        candidate_number=sender_number,
        task_description=build_task_description(message),
        original_message=message,
        timestamp=datetime.now(timezone.utc),
        category=category,
        priority=priority,
        status=DEFAULT_TASK_STATUS,
    )
