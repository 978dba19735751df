"""Testes do ConnectionOrchestrator com gateway, sink e relógio falsos."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

from app.coordinators.whatsapp.connection import (
    CONNECTED_FRAME,
    ConnectionOrchestrator,
    EventBroadcaster,
    StatusPoller,
    TaskTracker,
)
from app.infra.stores import MemoryInstanceRegistry
from tests.fakes.fake_clock import FakeClock
from tests.fakes.fake_gateway import DEFAULT_QR, FakeGateway
from tests.fakes.fake_sink import FakeSink
from utils.errors import InstanceNotFoundError, NoConnectedInstanceError, ProviderError

INTERVAL = 30.0
TIMEOUT = 300.0
GRACE = 1.0


@dataclass
class Harness:
    orchestrator: ConnectionOrchestrator
    gateway: FakeGateway
    registry: MemoryInstanceRegistry
    broadcaster: EventBroadcaster
    poller: StatusPoller
    tasks: TaskTracker
    clock: FakeClock


def _build(gateway: FakeGateway | None = None, *, qr_max_attempts: int = 5) -> Harness:
    gateway = gateway or FakeGateway()
    clock = FakeClock()
    registry = MemoryInstanceRegistry()
    broadcaster = EventBroadcaster()
    poller = StatusPoller(
        gateway,
        interval_seconds=INTERVAL,
        timeout_seconds=TIMEOUT,
        sleep=clock.sleep,
        clock=clock.monotonic,
    )
    tasks = TaskTracker()
    orchestrator = ConnectionOrchestrator(
        gateway=gateway,
        registry=registry,
        broadcaster=broadcaster,
        poller=poller,
        tasks=tasks,
        qr_max_attempts=qr_max_attempts,
        qr_interval_seconds=1.0,
        close_grace_seconds=GRACE,
        sleep=clock.sleep,
        session_id_factory=lambda: "generated-session",
    )
    return Harness(orchestrator, gateway, registry, broadcaster, poller, tasks, clock)


class TestConnect:
    """Criação e registro de instâncias."""

    async def test_registers_session(self) -> None:
        h = _build()

        result = await h.orchestrator.connect("s1")

        assert result.session_id == "s1"
        assert result.instance_name == "wa_1"
        assert result.replaced_instance is None
        session = h.registry.get("s1")
        assert session is not None
        assert session.status == "created"

    async def test_generates_session_id_when_missing(self) -> None:
        h = _build()

        result = await h.orchestrator.connect()

        assert result.session_id == "generated-session"
        assert h.registry.find_instance_name("generated-session") == "wa_1"

    async def test_provider_failure_registers_nothing(self) -> None:
        h = _build()
        h.gateway.create_error = ProviderError("401")

        with pytest.raises(ProviderError):
            await h.orchestrator.connect("s1")

        assert len(h.registry) == 0

    async def test_unexpected_failure_is_wrapped(self) -> None:
        h = _build()
        h.gateway.create_error = RuntimeError("boom")

        with pytest.raises(ProviderError, match="boom"):
            await h.orchestrator.connect("s1")

    async def test_reconnect_replaces_previous_instance(self) -> None:
        h = _build()
        await h.orchestrator.connect("s1")

        result = await h.orchestrator.connect("s1")

        assert result.instance_name == "wa_2"
        assert result.replaced_instance == "wa_1"
        assert h.gateway.deleted == ["wa_1"]
        assert h.registry.find_instance_name("s1") == "wa_2"
        assert len(h.registry) == 1


class TestStream:
    """Fluxo QR code → status pelo stream."""

    async def test_happy_path_qr_then_open(self) -> None:
        h = _build(FakeGateway(statuses=["open"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()

        assert h.orchestrator.open_stream("s1", sink) is True
        await h.clock.advance(0)

        assert sink.frames[0] == CONNECTED_FRAME
        events = sink.events()
        assert [event_type for event_type, _ in events] == ["qrcode", "status"]
        assert events[0][1]["qrcode"] == DEFAULT_QR
        assert events[1][1]["connected"] is True
        assert events[1][1]["status"] == "open"
        assert events[1][1]["instanceName"] == "wa_1"
        assert sink.closed is False

        await h.clock.advance(GRACE)

        assert sink.closed is True
        assert h.broadcaster.has_stream("s1") is False
        assert h.poller.is_polling("wa_1") is False
        # Sessão conectada permanece registrada até o disconnect
        session = h.registry.get("s1")
        assert session is not None
        assert session.status == "open"
        assert h.gateway.deleted == []

    async def test_single_qr_event_after_three_misses(self) -> None:
        h = _build(FakeGateway(qr_codes=[None, None, None, "QR-4"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)

        await h.clock.advance(3.0)

        assert h.gateway.qr_calls == 4
        qr_events = [data for event_type, data in sink.events() if event_type == "qrcode"]
        assert len(qr_events) == 1
        assert qr_events[0]["qrcode"] == "QR-4"
        assert h.poller.is_polling("wa_1") is True
        await h.orchestrator.shutdown()

    async def test_qr_retry_until_ready(self) -> None:
        h = _build(FakeGateway(qr_codes=[None, RuntimeError("404"), "QR-3"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)

        await h.clock.advance(2.0)

        assert h.gateway.qr_calls == 3
        event_type, data = sink.events()[0]
        assert event_type == "qrcode"
        assert data["qrcode"] == "QR-3"
        assert h.poller.is_polling("wa_1") is True
        assert h.registry.get("s1").status == "qr_issued"
        await h.orchestrator.shutdown()

    async def test_qr_timeout_closes_stream_and_discards_session(self) -> None:
        h = _build(FakeGateway(qr_codes=[None]), qr_max_attempts=20)
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)

        await h.clock.advance(25.0)

        assert h.gateway.qr_calls == 20
        events = sink.events()
        assert len(events) == 1
        assert events[0][0] == "error"
        assert events[0][1]["code"] == "QR_CODE_TIMEOUT"
        assert sink.closed is True
        assert h.gateway.deleted == ["wa_1"]
        assert h.registry.get("s1") is None
        assert h.poller.count == 0

    async def test_unknown_session_gets_error_and_close(self) -> None:
        h = _build()
        sink = FakeSink()

        assert h.orchestrator.open_stream("missing", sink) is False

        events = sink.events()
        assert len(events) == 1
        assert events[0][0] == "error"
        assert events[0][1]["code"] == "INSTANCE_NOT_FOUND"
        assert sink.closed is True
        assert h.tasks.active_count == 0

    async def test_status_timeout_discards_session(self) -> None:
        h = _build(FakeGateway(statuses=["connecting"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)

        await h.clock.advance(TIMEOUT)
        await h.clock.advance(GRACE)

        statuses = [data["status"] for event_type, data in sink.events() if event_type == "status"]
        assert statuses == ["connecting", "timeout"]
        assert sink.closed is True
        assert h.gateway.deleted == ["wa_1"]
        assert h.registry.get("s1") is None

    async def test_client_disconnect_stops_polling(self) -> None:
        h = _build(FakeGateway(statuses=["connecting"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)
        await h.clock.advance(0)
        assert h.poller.is_polling("wa_1") is True

        sink.disconnect()

        assert h.poller.is_polling("wa_1") is False
        assert h.broadcaster.has_stream("s1") is False
        calls = h.gateway.status_calls
        await h.clock.advance(INTERVAL * 3)
        assert h.gateway.status_calls == calls

    async def test_client_disconnect_cancels_qr_acquisition(self) -> None:
        h = _build(FakeGateway(qr_codes=[None, DEFAULT_QR]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)
        await h.clock.advance(0)
        assert h.gateway.qr_calls == 1

        sink.disconnect()
        await h.clock.advance(5.0)

        assert h.gateway.qr_calls == 1
        assert h.poller.count == 0
        assert h.tasks.active_count == 0

    async def test_second_stream_replaces_first(self) -> None:
        h = _build(FakeGateway(qr_codes=[None]))
        await h.orchestrator.connect("s1")
        first, second = FakeSink(), FakeSink()

        h.orchestrator.open_stream("s1", first)
        h.orchestrator.open_stream("s1", second)

        assert first.closed is True
        assert second.closed is False
        assert h.broadcaster.has_stream("s1") is True
        await h.orchestrator.shutdown()

    async def test_grace_close_spares_stream_of_reconnected_session(self) -> None:
        h = _build(FakeGateway(statuses=["open", "created"]))
        await h.orchestrator.connect("s1")
        first = FakeSink()
        h.orchestrator.open_stream("s1", first)
        await h.clock.advance(0)
        assert [event_type for event_type, _ in first.events()] == ["qrcode", "status"]

        await h.orchestrator.connect("s1")
        second = FakeSink()
        h.orchestrator.open_stream("s1", second)
        await h.clock.advance(0)
        await h.clock.advance(GRACE)

        assert [event_type for event_type, _ in second.events()] == ["qrcode"]
        assert second.closed is False
        assert h.broadcaster.has_stream("s1") is True
        assert h.poller.is_polling("wa_2") is True
        assert h.registry.find_instance_name("s1") == "wa_2"
        await h.orchestrator.shutdown()

    async def test_qr_code_logged_only_by_length(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="app.coordinators.whatsapp.connection")
        h = _build()
        await h.orchestrator.connect("s1")

        h.orchestrator.open_stream("s1", FakeSink())
        await h.clock.advance(0)

        records = [record for record in caplog.records if record.getMessage() == "qr_code_obtained"]
        assert len(records) == 1
        assert records[0].qrcode_length == len(DEFAULT_QR)
        assert not hasattr(records[0], "qrcode")
        await h.orchestrator.shutdown()


class TestStatusAndDisconnect:
    """Consulta pontual e desconexão."""

    async def test_get_status_updates_registry(self) -> None:
        h = _build(FakeGateway(statuses=["connecting"]))
        await h.orchestrator.connect("s1")

        status = await h.orchestrator.get_status("s1")

        assert status.status == "connecting"
        assert h.registry.get("s1").status == "connecting"

    async def test_get_status_unknown_session(self) -> None:
        h = _build()
        with pytest.raises(InstanceNotFoundError):
            await h.orchestrator.get_status("missing")

    async def test_disconnect_unknown_session(self) -> None:
        h = _build()
        with pytest.raises(InstanceNotFoundError):
            await h.orchestrator.disconnect("missing")

    async def test_disconnect_succeeds_when_provider_delete_fails(self) -> None:
        h = _build()
        h.gateway.delete_error = ProviderError("500")
        await h.orchestrator.connect("s1")

        instance_name = await h.orchestrator.disconnect("s1")

        assert instance_name == "wa_1"
        assert h.gateway.deleted == ["wa_1"]
        assert h.registry.get("s1") is None

    async def test_disconnect_during_polling_notifies_stream(self) -> None:
        h = _build(FakeGateway(statuses=["connecting"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)
        await h.clock.advance(0)

        await h.orchestrator.disconnect("s1")

        last_type, last_data = sink.events()[-1]
        assert last_type == "status"
        assert last_data["status"] == "disconnected"
        assert last_data["connected"] is False
        assert sink.closed is True
        assert h.poller.count == 0
        assert h.registry.get("s1") is None


class TestMessagesAndDiagnostics:
    """Envio de texto, snapshot e shutdown."""

    async def test_send_message_delegates(self) -> None:
        h = _build()
        h.gateway.connected_instance = "wa_9"

        assert await h.orchestrator.send_message("+55 41 99999-0000", "oi") is True
        assert h.gateway.sent == [("+55 41 99999-0000", "oi")]

    async def test_send_message_without_connection(self) -> None:
        h = _build()
        with pytest.raises(NoConnectedInstanceError):
            await h.orchestrator.send_message("5541999990000", "oi")

    async def test_snapshot_lists_sessions_streams_and_polls(self) -> None:
        h = _build(FakeGateway(statuses=["connecting"]))
        await h.orchestrator.connect("s1")
        h.orchestrator.open_stream("s1", FakeSink())
        await h.clock.advance(0)

        snapshot = h.orchestrator.snapshot()

        assert [session["sessionId"] for session in snapshot["sessions"]] == ["s1"]
        assert snapshot["streams"] == ["s1"]
        assert snapshot["pollers"][0]["instanceName"] == "wa_1"
        assert snapshot["pollers"][0]["lastStatus"] == "connecting"
        await h.orchestrator.shutdown()

    async def test_shutdown_stops_everything(self) -> None:
        h = _build(FakeGateway(statuses=["connecting"]))
        await h.orchestrator.connect("s1")
        sink = FakeSink()
        h.orchestrator.open_stream("s1", sink)
        await h.clock.advance(0)

        await h.orchestrator.shutdown(timeout_seconds=0.1)

        assert h.poller.count == 0
        assert h.broadcaster.count == 0
        assert sink.closed is True
        assert sink.events()[-1][1]["code"] == "SERVER_SHUTDOWN"
        assert h.tasks.active_count == 0
