"""Message intake - classify inbound WhatsApp messages and store resulting tasks."""

from typing import Optional
from src.models.provider_event import IncomingMessage
from src.models.task import Task
from src.services.task_classifier import classify_message
from src.services.task_store import TaskStore
from src.utils.logging import (
    get_structured_logger,
    sanitize_message_text,
    mask_phone_number,
)

logger = get_structured_logger(__name__)


class MessageIntake:
    """Feeds provider messages through the classifier into a task store."""

    def __init__(self, task_store: TaskStore):
        self.task_store = task_store

    async def handle_message(self, message: IncomingMessage) -> Optional[Task]:
        """
        Classify one message and store the task, if any.

        Errors are logged and swallowed so a bad message never disturbs the
        provider session.
        """
        try:
            task = classify_message(message.body, message.sender_name, message.sender_number)
        except Exception as e:
            logger.error(
                "Error handling message",
                message_id=message.message_id,
                sender_number=mask_phone_number(message.sender_number),
                error=str(e),
                exc_info=True
            )
            return None

        if task is None:
            logger.debug(
                "Message is not task-worthy",
                message_id=message.message_id,
                sender_number=mask_phone_number(message.sender_number),
                message_preview=sanitize_message_text(message.body, max_length=100)
            )
            return None

        self.task_store.add(task)
        logger.info(
            "New task detected",
            task_id=task.id,
            message_id=message.message_id,
            sender_number=mask_phone_number(message.sender_number),
            category=task.category.value,
            task_description=sanitize_message_text(task.task_description)
        )
        return task
