"""WhatsApp connection endpoints."""

from fastapi import APIRouter, Depends
from api.dependencies import get_connection_tracker
from src.services.connection_tracker import ConnectionTracker

router = APIRouter(prefix="/api/whatsapp")


@router.post("/connect")
async def connect(tracker: ConnectionTracker = Depends(get_connection_tracker)) -> dict:
    """
    Start the WhatsApp client if it is idle.

    Repeated calls while connecting or connected only report the current
    state. Provider start-up failures surface as a 500 through the
    ProviderInitError handler.
    """
    result = await tracker.connect()
    return result.model_dump(mode="json")


@router.get("/connect")
async def connection_status(tracker: ConnectionTracker = Depends(get_connection_tracker)) -> dict:
    snapshot = tracker.snapshot()
    return {
        "connected": snapshot.connected,
        "initializing": snapshot.initializing,
    }


@router.get("/qr")
async def pairing_code(tracker: ConnectionTracker = Depends(get_connection_tracker)) -> dict:
    """Latest pairing code and its rendered image; empty until the provider issues one."""
    snapshot = tracker.snapshot()
    return {
        "qr": snapshot.qr,
        "qrImage": snapshot.qr_image,
        "isInitializing": snapshot.initializing,
    }
