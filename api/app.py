"""FastAPI application factory wiring the task store and connection tracker."""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from api import health, tasks
from api.whatsapp import connect
from src.config import AppConfig
from src.services.connection_tracker import ConnectionTracker
from src.services.message_intake import MessageIntake
from src.services.messaging_provider import BridgeMessagingProvider
from src.services.task_store import TaskStore
from src.utils.errors import ProviderInitError, TaskNotFoundError
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


def build_connection_tracker(config: AppConfig, task_store: TaskStore) -> ConnectionTracker:
    """Default tracker: bridge subprocess provider feeding messages into the store."""
    intake = MessageIntake(task_store)
    return ConnectionTracker(
        provider_factory=lambda: BridgeMessagingProvider(config.bridge_command),
        message_handler=intake.handle_message,
        release_timeout=config.provider_shutdown_timeout_seconds,
    )


def create_app(
    config: Optional[AppConfig] = None,
    task_store: Optional[TaskStore] = None,
    connection_tracker: Optional[ConnectionTracker] = None,
) -> FastAPI:
    config = config or AppConfig.from_env()
    task_store = task_store if task_store is not None else TaskStore()
    connection_tracker = connection_tracker or build_connection_tracker(config, task_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        connection_tracker.install_fault_barrier()
        logger.info("WhatsApp backend running", port=config.port)
        try:
            yield
        finally:
            logger.info("Shutting down gracefully...")
            await connection_tracker.shutdown(timeout=config.provider_shutdown_timeout_seconds)

    app = FastAPI(title="WhatsApp Tasks Backend", lifespan=lifespan)
    app.state.config = config
    app.state.task_store = task_store
    app.state.connection_tracker = connection_tracker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        header = LoggingConfig.LOG_CORRELATION_ID_HEADER
        with correlation_context(request.headers.get(header)) as correlation_id:
            response = await call_next(request)
            response.headers[header] = correlation_id
            return response

    @app.exception_handler(TaskNotFoundError)
    async def task_not_found_handler(request: Request, exc: TaskNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "Task not found"})

    @app.exception_handler(ProviderInitError)
    async def provider_init_error_handler(request: Request, exc: ProviderInitError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"error": "Failed to connect to WhatsApp"})

    app.include_router(health.router)
    app.include_router(connect.router)
    app.include_router(tasks.router)

    return app
