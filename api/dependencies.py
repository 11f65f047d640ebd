"""Request-scoped accessors for the services owned by the application."""

from fastapi import Request
from src.services.connection_tracker import ConnectionTracker
from src.services.task_store import TaskStore


def get_task_store(request: Request) -> TaskStore:
    return request.app.state.task_store


def get_connection_tracker(request: Request) -> ConnectionTracker:
    return request.app.state.connection_tracker
