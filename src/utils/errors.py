"""Error handling utilities."""


class WhatsAppTasksError(Exception):
    """Base exception for the WhatsApp tasks backend."""
    pass


class TaskNotFoundError(WhatsAppTasksError):
    """No task with the requested id exists in the store."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ProviderInitError(WhatsAppTasksError):
    """Messaging provider failed to initialize."""
    pass


class RenderError(WhatsAppTasksError):
    """Pairing code could not be rendered to an image."""
    pass


class ProviderFaultError(WhatsAppTasksError):
    """Runtime fault raised while handling a messaging provider event."""
    pass
