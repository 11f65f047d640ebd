"""Tests for the WhatsApp bridge messaging provider."""

import asyncio
import json
import sys
import pytest
from src.models.provider_event import ProviderEventType
from src.services.messaging_provider import BridgeMessagingProvider, parse_bridge_line
from src.utils.errors import ProviderInitError
from tests.fixtures.provider_events import (
    AUTH_FAILURE_LINE,
    AUTHENTICATED_LINE,
    BANNER_LINE,
    DISCONNECTED_LINE,
    ERROR_LINE,
    MESSAGE_LINE,
    NON_FATAL_ERROR_LINE,
    QR_LINE,
    READY_LINE,
)


def python_bridge(*lines: str, linger: float = 0.0) -> list[str]:
    """Command that prints the given lines and exits, standing in for the Node bridge."""
    script = (
        "import sys, time\n"
        f"for line in {list(lines)!r}:\n"
        "    print(line, flush=True)\n"
        f"time.sleep({linger})\n"
    )
    return [sys.executable, "-c", script]


@pytest.mark.unit
def test_parse_qr_line():
    event = parse_bridge_line(QR_LINE)

    assert event.type == ProviderEventType.QR
    assert event.qr == "2@AbCdEfGh,IjKlMn==,OpQr=="


@pytest.mark.unit
@pytest.mark.parametrize("line,expected_type", [
    (READY_LINE, ProviderEventType.READY),
    (AUTHENTICATED_LINE, ProviderEventType.AUTHENTICATED),
    (AUTH_FAILURE_LINE, ProviderEventType.AUTH_FAILURE),
    (DISCONNECTED_LINE, ProviderEventType.DISCONNECTED),
    (ERROR_LINE, ProviderEventType.ERROR),
])
def test_parse_lifecycle_lines(line, expected_type):
    assert parse_bridge_line(line).type == expected_type


@pytest.mark.unit
def test_parse_error_fatal_flag():
    assert parse_bridge_line(ERROR_LINE).fatal is True
    assert parse_bridge_line(NON_FATAL_ERROR_LINE).fatal is False


@pytest.mark.unit
def test_parse_message_line():
    event = parse_bridge_line(MESSAGE_LINE)

    assert event.type == ProviderEventType.MESSAGE
    assert event.message.body == "When can we schedule the interview?"
    assert event.message.chat_id == "15551234567@c.us"
    assert event.message.sender_number == "15551234567"
    assert event.message.sender_name == "Dana"
    assert event.message.message_id == "false_15551234567@c.us_3EB0C767D26A1D6F4A3B"


@pytest.mark.unit
@pytest.mark.parametrize("line", [
    "",
    "   ",
    BANNER_LINE,
    "[1, 2, 3]",
    json.dumps({"qr": "no type"}),
    json.dumps({"type": "battery_changed"}),
])
def test_parse_ignores_noise(line):
    assert parse_bridge_line(line) is None


@pytest.mark.unit
def test_parse_error_line_with_message_text():
    """Extra keys on lifecycle events do not break parsing."""
    line = json.dumps({"type": "error", "detail": "boom", "message": "Evaluation failed"})

    event = parse_bridge_line(line)

    assert event.type == ProviderEventType.ERROR
    assert event.message is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_bridge_command_raises_init_error():
    provider = BridgeMessagingProvider(["/nonexistent/whatsapp-bridge"])

    with pytest.raises(ProviderInitError):
        await provider.initialize()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_bridge_command_raises_init_error():
    with pytest.raises(ProviderInitError):
        await BridgeMessagingProvider([]).initialize()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_bridge_events_are_relayed_until_exit():
    provider = BridgeMessagingProvider(python_bridge(BANNER_LINE, QR_LINE, READY_LINE, MESSAGE_LINE))
    received = []
    exited = asyncio.Event()

    async def handler(event):
        received.append(event)
        if event.type == ProviderEventType.DISCONNECTED:
            exited.set()

    provider.set_event_handler(handler)
    await provider.initialize()
    await asyncio.wait_for(exited.wait(), timeout=15)

    assert [event.type for event in received] == [
        ProviderEventType.QR,
        ProviderEventType.READY,
        ProviderEventType.MESSAGE,
        ProviderEventType.DISCONNECTED,
    ]
    assert "code 0" in received[-1].reason
    await provider.destroy()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_destroy_terminates_bridge_without_disconnect_event():
    provider = BridgeMessagingProvider(python_bridge(READY_LINE, linger=30), terminate_timeout=5)
    received = []
    ready = asyncio.Event()

    async def handler(event):
        received.append(event)
        if event.type == ProviderEventType.READY:
            ready.set()

    provider.set_event_handler(handler)
    await provider.initialize()
    await asyncio.wait_for(ready.wait(), timeout=15)

    await provider.destroy()
    await asyncio.sleep(0.1)

    assert not provider.running
    assert [event.type for event in received] == [ProviderEventType.READY]
