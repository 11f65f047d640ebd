"""Test helper functions and fakes."""

import asyncio
from typing import Optional
from src.models.provider_event import ProviderEvent
from src.services.messaging_provider import MessagingProvider


class FakeMessagingProvider(MessagingProvider):
    """In-memory messaging provider; tests push events with emit()."""

    def __init__(
        self,
        fail_initialize: bool = False,
        fail_destroy: bool = False,
        block_initialize: bool = False,
        events_on_initialize: Optional[list[ProviderEvent]] = None,
    ):
        super().__init__()
        self.fail_initialize = fail_initialize
        self.fail_destroy = fail_destroy
        self.block_initialize = block_initialize
        self.events_on_initialize = events_on_initialize or []
        self.initialize_gate = asyncio.Event()
        self.initialize_calls = 0
        self.destroy_calls = 0

    async def initialize(self) -> None:
        self.initialize_calls += 1
        if self.block_initialize:
            await self.initialize_gate.wait()
        if self.fail_initialize:
            raise RuntimeError("browser failed to launch")
        for event in self.events_on_initialize:
            await self.emit(event)

    async def destroy(self) -> None:
        self.destroy_calls += 1
        if self.fail_destroy:
            raise RuntimeError("browser already closed")


class FakeProviderFactory:
    """Callable provider factory that remembers every provider it built."""

    def __init__(self, **provider_kwargs):
        self.provider_kwargs = provider_kwargs
        self.created: list[FakeMessagingProvider] = []

    def __call__(self) -> FakeMessagingProvider:
        provider = FakeMessagingProvider(**self.provider_kwargs)
        self.created.append(provider)
        return provider

    @property
    def latest(self) -> Optional[FakeMessagingProvider]:
        return self.created[-1] if self.created else None


async def fake_qr_renderer(code: str) -> str:
    """Deterministic stand-in for the PNG renderer."""
    return f"data:image/png;base64,{code}"


async def failing_qr_renderer(code: str) -> str:
    raise RuntimeError("renderer exploded")


async def settle(iterations: int = 10) -> None:
    """Let detached tasks (rendering, client release) run to completion."""
    for _ in range(iterations):
        await asyncio.sleep(0)
