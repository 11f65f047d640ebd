"""Messaging provider interface and the WhatsApp Web bridge implementation.

The WhatsApp Web protocol itself lives in an external bridge process (for
example a Node script built on whatsapp-web.js). The bridge writes one JSON
object per line to stdout; each line becomes a ProviderEvent.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional
from pydantic import ValidationError
from src.models.provider_event import IncomingMessage, ProviderEvent, ProviderEventType
from src.utils.errors import ProviderInitError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

ProviderEventHandler = Callable[[ProviderEvent], Awaitable[None]]

_EVENT_FIELDS = ("type", "qr", "reason", "detail", "fatal")


class MessagingProvider(ABC):
    """External messaging client: initialize, destroy, and an event stream."""

    def __init__(self):
        self._event_handler: Optional[ProviderEventHandler] = None

    def set_event_handler(self, handler: Optional[ProviderEventHandler]) -> None:
        """Subscribe a coroutine to receive every provider event."""
        self._event_handler = handler

    async def emit(self, event: ProviderEvent) -> None:
        """Deliver an event to the subscribed handler."""
        if self._event_handler is None:
            logger.debug("Dropping provider event with no subscriber", event_type=event.type.value)
            return
        await self._event_handler(event)

    @abstractmethod
    async def initialize(self) -> None:
        """Start the client. Raises ProviderInitError on failure."""

    @abstractmethod
    async def destroy(self) -> None:
        """Release the client's resources."""


ProviderFactory = Callable[[], MessagingProvider]


def parse_bridge_line(line: str) -> Optional[ProviderEvent]:
    """
    Parse one line of bridge output into a ProviderEvent.

    Returns None for blank lines, non-JSON output (the bridge may print
    banners or ASCII QR art) and unknown event types.
    """
    line = line.strip()
    if not line:
        return None

    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Ignoring non-JSON bridge output", line_preview=line[:80])
        return None

    if not isinstance(data, dict) or "type" not in data:
        logger.debug("Ignoring bridge output without event type")
        return None

    try:
        if data["type"] == ProviderEventType.MESSAGE.value:
            return ProviderEvent(
                type=ProviderEventType.MESSAGE,
                message=IncomingMessage.model_validate(data),
            )
        return ProviderEvent.model_validate(
            {key: data[key] for key in _EVENT_FIELDS if key in data}
        )
    except ValidationError as e:
        logger.warning(
            "Invalid bridge event",
            event_type=str(data.get("type")),
            error=str(e)
        )
        return None


class BridgeMessagingProvider(MessagingProvider):
    """Runs the WhatsApp Web bridge as a subprocess and relays its events."""

    def __init__(self, command: list[str], terminate_timeout: float = 5.0):
        super().__init__()
        self.command = command
        self.terminate_timeout = terminate_timeout
        self._process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._destroying = False

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def initialize(self) -> None:
        if self._process is not None:
            logger.warning("Bridge process already started")
            return

        if not self.command:
            raise ProviderInitError("No bridge command configured")

        logger.info("Starting WhatsApp bridge", command=self.command[0])
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            raise ProviderInitError(f"Failed to start bridge '{self.command[0]}': {e}") from e

        self._destroying = False
        self._reader_task = asyncio.create_task(self._read_events())
        self._stderr_task = asyncio.create_task(self._drain_stderr())
        logger.info("WhatsApp bridge started", pid=self._process.pid)

    async def _read_events(self) -> None:
        """Relay stdout events until the bridge exits."""
        process = self._process
        while True:
            raw = await process.stdout.readline()
            if not raw:
                break
            event = parse_bridge_line(raw.decode("utf-8", errors="replace"))
            if event is not None:
                await self.emit(event)

        returncode = await process.wait()
        if not self._destroying:
            logger.warning("WhatsApp bridge exited", returncode=returncode)
            await self.emit(ProviderEvent(
                type=ProviderEventType.DISCONNECTED,
                reason=f"bridge exited with code {returncode}",
            ))

    async def _drain_stderr(self) -> None:
        process = self._process
        while True:
            raw = await process.stderr.readline()
            if not raw:
                break
            logger.debug("Bridge stderr", line=raw.decode("utf-8", errors="replace").rstrip()[:200])

    async def destroy(self) -> None:
        self._destroying = True
        process = self._process
        if process is None:
            return

        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.terminate_timeout)
            except asyncio.TimeoutError:
                logger.warning("Bridge did not exit after terminate, killing", pid=process.pid)
                process.kill()
                await process.wait()

        current = asyncio.current_task()
        for task in (self._reader_task, self._stderr_task):
            if task is not None and task is not current and not task.done():
                task.cancel()

        self._process = None
        logger.info("WhatsApp bridge stopped", returncode=process.returncode)
