"""Render WhatsApp pairing codes as QR code images."""

import asyncio
import base64
import io
import qrcode
from src.utils.errors import RenderError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"


def render_qr_data_url(code: str) -> str:
    """Encode a pairing code as a PNG QR image and return it as a data URL."""
    if not code:
        raise RenderError("Pairing code is empty")

    try:
        image = qrcode.make(code)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
    except Exception as e:
        raise RenderError(f"Failed to render pairing code: {e}") from e

    return DATA_URL_PREFIX + base64.b64encode(buffer.getvalue()).decode("ascii")


async def render_qr_data_url_async(code: str) -> str:
    """Render off the event loop; image encoding is CPU bound."""
    with log_timing("render_pairing_image", logger=logger, code_length=len(code or "")):
        return await asyncio.to_thread(render_qr_data_url, code)
