"""Tests for ptyhost.session.wire (Wire, WireEvent, EventType)."""

from __future__ import annotations

import asyncio

from ptyhost.session.wire import LAST_LINE_LIMIT, EventType, Wire, WireEvent


# ---------------------------------------------------------------------------
# EventType
# ---------------------------------------------------------------------------


class TestEventType:
    def test_all_variants_exist(self) -> None:
        expected = {"PTY_SPAWN", "PTY_EXIT", "PTY_KILL", "ERROR"}
        assert {e.name for e in EventType} == expected

    def test_values_are_lowercase(self) -> None:
        for e in EventType:
            assert e.value == e.name.lower()


# ---------------------------------------------------------------------------
# WireEvent
# ---------------------------------------------------------------------------


class TestWireEvent:
    def test_defaults(self) -> None:
        event = WireEvent(type=EventType.ERROR)
        assert event.data == {}

    def test_with_data(self) -> None:
        event = WireEvent(type=EventType.ERROR, data={"error": "hello"})
        assert event.data["error"] == "hello"


# ---------------------------------------------------------------------------
# Wire — basic send/subscribe
# ---------------------------------------------------------------------------


class TestWire:
    def test_send_to_subscriber(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send(WireEvent(type=EventType.ERROR, data={"error": "hi"}))
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.ERROR
        assert event.data["error"] == "hi"

    def test_send_to_multiple_subscribers(self) -> None:
        wire = Wire()
        q1 = wire.subscribe()
        q2 = wire.subscribe()
        wire.send(WireEvent(type=EventType.PTY_KILL, data={"session_id": "pty_1"}))
        e1 = q1.get_nowait()
        e2 = q2.get_nowait()
        assert e1 is not None and e2 is not None
        assert e1.type == e2.type == EventType.PTY_KILL

    def test_unsubscribe(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.unsubscribe(q)
        wire.send(WireEvent(type=EventType.ERROR))
        assert q.empty()

    def test_unsubscribe_nonexistent_is_safe(self) -> None:
        wire = Wire()
        q: asyncio.Queue[WireEvent | None] = asyncio.Queue()
        wire.unsubscribe(q)  # Should not raise


# ---------------------------------------------------------------------------
# Wire — closed-state guard
# ---------------------------------------------------------------------------


class TestWireClosedGuard:
    def test_close_sends_none_sentinel_to_all(self) -> None:
        wire = Wire()
        q1 = wire.subscribe()
        q2 = wire.subscribe()
        wire.close()
        assert q1.get_nowait() is None
        assert q2.get_nowait() is None

    def test_send_after_close_is_dropped(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.close()
        q.get_nowait()  # drain sentinel
        wire.send(WireEvent(type=EventType.ERROR, data={"error": "too late"}))
        assert q.empty()

    def test_convenience_methods_respect_closed(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.close()
        q.get_nowait()  # drain sentinel
        wire.send_error("nope")
        wire.send_pty_spawn("pty_1", "t", 1)
        wire.send_pty_exit("pty_1", "t", 0)
        wire.send_pty_kill("pty_1", "t", cleanup=False)
        assert q.empty()


# ---------------------------------------------------------------------------
# Wire — convenience methods
# ---------------------------------------------------------------------------


class TestWireConvenience:
    def test_send_error(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_error("something failed", "pty_009")
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.ERROR
        assert event.data["error"] == "something failed"
        assert event.data["session_id"] == "pty_009"

    def test_send_pty_spawn(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_pty_spawn("pty_001", "npm run dev", 4242)
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.PTY_SPAWN
        assert event.data == {"session_id": "pty_001", "title": "npm run dev", "pid": 4242}

    def test_send_pty_exit(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_pty_exit("pty_001", "build", exit_code=0, last_line="done", total_lines=12)
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.PTY_EXIT
        assert event.data["session_id"] == "pty_001"
        assert event.data["exit_code"] == 0
        assert event.data["last_line"] == "done"
        assert event.data["total_lines"] == 12

    def test_send_pty_exit_truncates_last_line(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_pty_exit("pty_002", "test", exit_code=1, last_line="x" * 1000)
        event = q.get_nowait()
        assert event is not None
        assert len(event.data["last_line"]) == LAST_LINE_LIMIT == 250

    def test_send_pty_kill(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_pty_kill("pty_003", "server", cleanup=True)
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.PTY_KILL
        assert event.data["cleanup"] is True
