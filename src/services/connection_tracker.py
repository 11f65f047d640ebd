"""Connection lifecycle tracker for the WhatsApp messaging provider."""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Optional
from src.models.connection import ConnectionSnapshot, ConnectionState, ConnectResult, ConnectStatus
from src.models.provider_event import IncomingMessage, ProviderEvent, ProviderEventType
from src.services.messaging_provider import MessagingProvider, ProviderFactory
from src.services.qr_renderer import render_qr_data_url_async
from src.utils.errors import ProviderFaultError, ProviderInitError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

MessageHandler = Callable[[IncomingMessage], Awaitable[Any]]
QRRenderer = Callable[[str], Awaitable[str]]

DEFAULT_RELEASE_TIMEOUT_SECONDS = 10.0


class ConnectionTracker:
    """
    Owns the single messaging provider client and its connection state.

    State moves disconnected -> initializing -> ready, and back to
    disconnected on auth failure, disconnect, fatal error or any fault while
    handling an event. Going back to disconnected clears the pairing
    artifacts and drops the client, so the next connect starts fresh.
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        message_handler: Optional[MessageHandler] = None,
        qr_renderer: QRRenderer = render_qr_data_url_async,
        release_timeout: float = DEFAULT_RELEASE_TIMEOUT_SECONDS,
    ):
        self._provider_factory = provider_factory
        self._message_handler = message_handler
        self._qr_renderer = qr_renderer
        self.release_timeout = release_timeout

        self.state = ConnectionState.DISCONNECTED
        self.qr_code = ""
        self.qr_image = ""
        self._provider: Optional[MessagingProvider] = None
        self._render_tasks: set[asyncio.Task] = set()
        self._release_tasks: set[asyncio.Task] = set()

    @property
    def provider(self) -> Optional[MessagingProvider]:
        return self._provider

    def snapshot(self) -> ConnectionSnapshot:
        return ConnectionSnapshot(state=self.state, qr=self.qr_code, qr_image=self.qr_image)

    async def connect(self) -> ConnectResult:
        """
        Start the provider unless a session is already up or starting.

        Raises ProviderInitError if the provider fails to initialize.
        """
        if self.state == ConnectionState.READY:
            return ConnectResult(
                status=ConnectStatus.ALREADY_CONNECTED,
                message="WhatsApp is already connected"
            )

        if self.state == ConnectionState.INITIALIZING:
            return ConnectResult(
                status=ConnectStatus.CONNECTING,
                message="WhatsApp is already connecting"
            )

        if self._provider is None:
            logger.info("Creating WhatsApp client")
            provider = self._provider_factory()
            provider.set_event_handler(partial(self.dispatch, source=provider))
            self._provider = provider

        provider = self._provider
        # Set before awaiting so concurrent connect requests see INITIALIZING
        self.state = ConnectionState.INITIALIZING
        logger.info("Initializing WhatsApp client")

        try:
            await provider.initialize()
        except Exception as e:
            logger.error("Error connecting to WhatsApp", error=str(e), exc_info=True)
            if self._provider is provider:
                self._teardown()
            raise ProviderInitError("Failed to connect to WhatsApp") from e

        return ConnectResult(
            status=ConnectStatus.CONNECTING,
            message="Connecting to WhatsApp... Check for QR code"
        )

    async def dispatch(self, event: ProviderEvent, source: Optional[MessagingProvider] = None) -> None:
        """Handle one provider event; faults reset the connection instead of propagating."""
        if source is not None and source is not self._provider:
            logger.debug("Ignoring event from released client", event_type=event.type.value)
            return

        try:
            await self.handle_event(event)
        except Exception as e:
            fault = ProviderFaultError(f"Fault while handling '{event.type.value}' event: {e}")
            fault.__cause__ = e
            self.recover_from_fault(fault)

    async def handle_event(self, event: ProviderEvent) -> None:
        if event.type == ProviderEventType.QR:
            self._on_qr(event.qr or "")

        elif event.type == ProviderEventType.READY:
            logger.info("WhatsApp client is ready")
            self.state = ConnectionState.READY

        elif event.type == ProviderEventType.AUTHENTICATED:
            logger.info("WhatsApp authenticated successfully")

        elif event.type == ProviderEventType.AUTH_FAILURE:
            logger.error("Authentication failed", reason=event.reason)
            self._teardown()

        elif event.type == ProviderEventType.MESSAGE:
            if event.message is None:
                logger.warning("Message event without payload")
            elif self._message_handler is None:
                logger.debug("No message handler registered, dropping message")
            else:
                await self._message_handler(event.message)

        elif event.type == ProviderEventType.DISCONNECTED:
            logger.info("WhatsApp client disconnected", reason=event.reason)
            self._teardown()

        elif event.type == ProviderEventType.ERROR:
            logger.error("WhatsApp client error", detail=event.detail, fatal=event.fatal)
            if event.fatal:
                self._teardown()

    def recover_from_fault(self, error: BaseException) -> None:
        """Log a fault from the event layer and fall back to disconnected."""
        logger.error(
            "Unhandled fault in WhatsApp event handling, resetting connection",
            error=str(error),
            error_type=type(error).__name__,
            previous_state=self.state.value,
            exc_info=error
        )
        self._teardown()

    def handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        """asyncio exception handler: last line of defence for stray task failures."""
        error = context.get("exception")
        if error is None:
            # Diagnostics such as "Task was destroyed but it is pending!" are not faults
            loop.default_exception_handler(context)
            return
        logger.error("Uncaught exception in event loop", detail=context.get("message"))
        self.recover_from_fault(error)

    def install_fault_barrier(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        loop.set_exception_handler(self.handle_loop_exception)

    def _on_qr(self, code: str) -> None:
        logger.info("QR code received")
        self.qr_code = code
        task = asyncio.create_task(self._render_pairing_image(code))
        self._render_tasks.add(task)
        task.add_done_callback(self._render_tasks.discard)

    async def _render_pairing_image(self, code: str) -> None:
        try:
            image = await self._qr_renderer(code)
        except Exception as e:
            logger.error("Error generating QR code image", error=str(e), exc_info=True)
            return

        if code != self.qr_code:
            logger.debug("Discarding QR image for superseded code")
            return

        self.qr_image = image
        logger.info("QR code image generated successfully")

    def _teardown(self) -> None:
        """Back to disconnected: clear pairing artifacts and release the client."""
        self.state = ConnectionState.DISCONNECTED
        self.qr_code = ""
        self.qr_image = ""

        provider = self._provider
        self._provider = None
        if provider is None:
            return

        provider.set_event_handler(None)
        task = asyncio.create_task(self._release_provider(provider))
        self._release_tasks.add(task)
        task.add_done_callback(self._release_tasks.discard)

    async def _release_provider(self, provider: MessagingProvider) -> None:
        try:
            await asyncio.wait_for(provider.destroy(), timeout=self.release_timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out releasing WhatsApp client", timeout_seconds=self.release_timeout)
        except Exception as e:
            logger.error("Error destroying client", error=str(e), exc_info=True)

    async def shutdown(self, timeout: float = DEFAULT_RELEASE_TIMEOUT_SECONDS) -> None:
        """Give the provider a bounded chance to clean up. Never raises."""
        logger.info("Shutting down WhatsApp client", timeout_seconds=timeout)

        for task in list(self._render_tasks):
            task.cancel()
        if self._render_tasks:
            await asyncio.gather(*self._render_tasks, return_exceptions=True)

        provider = self._provider
        self._provider = None
        self.state = ConnectionState.DISCONNECTED
        self.qr_code = ""
        self.qr_image = ""

        if provider is not None:
            provider.set_event_handler(None)
            try:
                await asyncio.wait_for(provider.destroy(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Timed out destroying client during shutdown", timeout_seconds=timeout)
            except Exception as e:
                logger.error("Error destroying client", error=str(e), exc_info=True)

        if self._release_tasks:
            _, pending = await asyncio.wait(list(self._release_tasks), timeout=timeout)
            for task in pending:
                task.cancel()
