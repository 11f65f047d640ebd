"""Health check endpoint."""

from fastapi import APIRouter, Depends
from api.dependencies import get_connection_tracker
from src.services.connection_tracker import ConnectionTracker

router = APIRouter()


@router.get("/")
async def health(tracker: ConnectionTracker = Depends(get_connection_tracker)) -> dict:
    """Service status plus the WhatsApp connection flags."""
    snapshot = tracker.snapshot()
    return {
        "status": "ok",
        "message": "WhatsApp Backend Service",
        "connected": snapshot.connected,
        "initializing": snapshot.initializing,
    }
