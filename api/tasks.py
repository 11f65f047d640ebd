"""Task endpoints."""

from fastapi import APIRouter, Depends
from api.dependencies import get_task_store
from src.models.task import TaskStatusUpdate
from src.services.task_store import TaskStore

router = APIRouter(prefix="/api/tasks")


@router.get("")
async def list_tasks(store: TaskStore = Depends(get_task_store)) -> dict:
    return {"tasks": [task.to_json_dict() for task in store.list()]}


@router.patch("/{task_id}")
async def update_task_status(
    task_id: str,
    update: TaskStatusUpdate,
    store: TaskStore = Depends(get_task_store),
) -> dict:
    task = store.update_status(task_id, update.status)
    return {"success": True, "task": task.to_json_dict()}


@router.delete("/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_task_store)) -> dict:
    store.delete(task_id)
    return {"success": True}
