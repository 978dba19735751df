"""Testes do QueueEventSink (transporte SSE)."""

from __future__ import annotations

import pytest

from app.infra.sse import KEEPALIVE_FRAME, QueueEventSink
from app.protocols.event_sink import SinkClosedError


async def test_frames_drain_until_close() -> None:
    sink = QueueEventSink(keepalive_seconds=5.0)
    sink.write("a")
    sink.write("b")
    sink.close()

    frames = [frame async for frame in sink.frames()]

    assert frames == ["a", "b"]
    assert sink.closed is True


async def test_write_after_close_raises() -> None:
    sink = QueueEventSink()
    sink.close()

    with pytest.raises(SinkClosedError):
        sink.write("late")


async def test_keepalive_when_idle() -> None:
    sink = QueueEventSink(keepalive_seconds=0.01)
    stream = sink.frames()

    first = await stream.__anext__()
    sink.close()
    rest = [frame async for frame in stream]

    assert first == KEEPALIVE_FRAME
    assert rest in ([], [KEEPALIVE_FRAME])


async def test_server_close_fires_handlers_once() -> None:
    sink = QueueEventSink()
    calls: list[str] = []
    sink.on_close(lambda: calls.append("closed"))

    sink.close()
    sink.close()
    _ = [frame async for frame in sink.frames()]

    assert calls == ["closed"]


async def test_client_disconnect_fires_handlers() -> None:
    sink = QueueEventSink(keepalive_seconds=5.0)
    calls: list[str] = []
    sink.on_close(lambda: calls.append("gone"))
    sink.write("a")
    stream = sink.frames()

    assert await stream.__anext__() == "a"
    await stream.aclose()

    assert calls == ["gone"]
    assert sink.closed is True


async def test_handler_failure_does_not_block_others() -> None:
    sink = QueueEventSink()
    calls: list[str] = []

    def _broken() -> None:
        raise RuntimeError("falhou")

    sink.on_close(_broken)
    sink.on_close(lambda: calls.append("ok"))

    sink.close()

    assert calls == ["ok"]
