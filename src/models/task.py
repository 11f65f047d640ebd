"""Task models."""

from enum import Enum
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class TaskCategory(str, Enum):
    """Task categories assigned by the message classifier."""
    SCHEDULING = "scheduling"
    FOLLOW_UP = "follow-up"
    STATUS_UPDATE = "status-update"
    GENERAL = "general"


class TaskPriority(str, Enum):
    """Task priority, derived from the category."""
    HIGH = "high"
    MEDIUM = "medium"


DEFAULT_TASK_STATUS = "new"


class Task(BaseModel):
    """Action item extracted from an inbound WhatsApp message."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., frozen=True, description="Task ID (ULID)")
    candidate_name: str = Field(..., alias="candidateName", frozen=True, description="Sender display name")
    candidate_number: str = Field(..., alias="candidateNumber", frozen=True, description="Sender phone number")
    task_description: str = Field(
        ...,
        alias="taskDescription",
        frozen=True,
        max_length=103,
        description="Message summary, truncated to 100 characters plus '...'"
    )
    original_message: str = Field(..., alias="originalMessage", frozen=True, description="Full message text")
    timestamp: datetime = Field(..., frozen=True, description="Creation time (UTC)")
    category: TaskCategory = Field(..., frozen=True, description="scheduling, follow-up, status-update or general")
    priority: TaskPriority = Field(..., frozen=True, description="high or medium")
    status: str = Field(
        default=DEFAULT_TASK_STATUS,
        description="Free-form lifecycle status; starts as 'new'"
    )

    def to_json_dict(self) -> dict:
        """Serialize with camelCase keys for the HTTP API."""
        return self.model_dump(mode="json", by_alias=True)


class TaskStatusUpdate(BaseModel):
    """Body of a task status update request."""
    status: str = Field(..., description="New status value (any string)")
