import threading
from typing import Any, Dict, List

import pytest

from kn.crds.wait import ReadyWaiter, generation_in_sync, is_deleted_event
from kn.errors import KnError, WaitCancelledError, WaitTimeoutError
from tests.helpers import ready_event, service_manifest


class FakeClock:
    """A monotonic clock that only moves when slept on or ticked."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class ScriptedWatch:
    """Replays ``events`` on every call, advancing the clock before each one."""

    def __init__(self, clock: FakeClock, events: List[Dict[str, Any]], step: float = 1.0):
        self.clock = clock
        self.events = events
        self.step = step
        self.calls: List[tuple] = []

    def __call__(self, name: str, timeout_seconds: int):
        self.calls.append((name, timeout_seconds))
        for event in self.events:
            self.clock.now += self.step
            yield event


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def waiter(clock: FakeClock) -> ReadyWaiter:
    return ReadyWaiter("Service", clock=clock, sleep=clock.sleep, poll_interval=0.5, error_window=2.0)


SERVICE = service_manifest("foo", ready=None)


class TestReadyWaiter:
    def test_ready(self, clock, waiter) -> None:
        watch = ScriptedWatch(clock, [ready_event(SERVICE, "Unknown"), ready_event(SERVICE, "True")], step=2.0)
        assert waiter.wait(watch, "foo", timeout=10) == 4.0
        assert watch.calls == [("foo", 10)]

    def test_added_events_are_ignored(self, clock, waiter) -> None:
        added = dict(ready_event(SERVICE, "True"), type="ADDED")
        watch = ScriptedWatch(clock, [added])
        with pytest.raises(WaitTimeoutError):
            waiter.wait(watch, "foo", timeout=3)

    def test_out_of_sync_generation_is_ignored(self, clock, waiter) -> None:
        event = ready_event(SERVICE, "True")
        event["object"]["metadata"]["generation"] = 2
        with pytest.raises(WaitTimeoutError):
            waiter.wait(ScriptedWatch(clock, [event]), "foo", timeout=3)

    def test_false_becomes_an_error_after_the_window(self, clock, waiter) -> None:
        """A persistent Ready=False fails with the reason and message, not a timeout."""
        watch = ScriptedWatch(clock, [ready_event(SERVICE, "False", "RevisionFailed", "boom")])
        with pytest.raises(KnError, match="RevisionFailed: boom") as excinfo:
            waiter.wait(watch, "foo", timeout=60)
        assert excinfo.type is KnError
        assert clock.now < 60

    def test_false_followed_by_unknown_is_forgotten(self, clock, waiter) -> None:
        watch = ScriptedWatch(
            clock,
            [
                ready_event(SERVICE, "False", "RevisionMissing", "pending"),
                ready_event(SERVICE, "Unknown"),
                ready_event(SERVICE, "Unknown"),
                ready_event(SERVICE, "True"),
            ],
        )
        assert waiter.wait(watch, "foo", timeout=60) == 4.0

    def test_silent_timeout(self, clock, waiter) -> None:
        watch = ScriptedWatch(clock, [])
        with pytest.raises(WaitTimeoutError, match="timeout: Service 'foo' not ready after 10 seconds"):
            waiter.wait(watch, "foo", timeout=10)
        assert watch.calls[0] == ("foo", 10)
        assert all(timeout >= 1 for _, timeout in watch.calls)

    def test_error_event_reopens_the_watch(self, clock, waiter) -> None:
        error = {"type": "ERROR", "object": {"message": "too old resource version"}}
        watch = ScriptedWatch(clock, [error, ready_event(SERVICE, "True")])
        with pytest.raises(WaitTimeoutError):
            waiter.wait(watch, "foo", timeout=5)
        assert len(watch.calls) > 1

    def test_messages_are_reported(self, clock, waiter) -> None:
        messages = []
        watch = ScriptedWatch(
            clock,
            [ready_event(SERVICE, "Unknown", message="Configuration is waiting"), ready_event(SERVICE, "True")],
        )
        waiter.wait(watch, "foo", timeout=10, message_callback=lambda elapsed, msg: messages.append((elapsed, msg)))
        assert messages == [(1.0, "Configuration is waiting")]

    def test_cancel(self, clock, waiter) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(WaitCancelledError):
            waiter.wait(ScriptedWatch(clock, []), "foo", cancel=cancel)


class TestWaitForEvent:
    def test_deleted(self, clock, waiter) -> None:
        watch = ScriptedWatch(clock, [{"type": "MODIFIED", "object": SERVICE}, {"type": "DELETED", "object": SERVICE}])
        assert waiter.wait_for_event(watch, "foo", is_deleted_event, timeout=10) == 2.0

    def test_already_done(self, clock, waiter) -> None:
        watch = ScriptedWatch(clock, [])
        assert waiter.wait_for_event(watch, "foo", is_deleted_event, already_done=lambda: True) == 0.0
        assert watch.calls == []

    def test_timeout(self, clock, waiter) -> None:
        with pytest.raises(WaitTimeoutError):
            waiter.wait_for_event(ScriptedWatch(clock, []), "foo", is_deleted_event, timeout=2)


def test_generation_in_sync() -> None:
    assert not generation_in_sync({"metadata": {"generation": 1}, "status": {}})
    assert generation_in_sync({"metadata": {"generation": 2}, "status": {"observedGeneration": 2}})
    with pytest.raises(KnError, match="no field 'generation'"):
        generation_in_sync({"kind": "Service", "metadata": {}, "status": {"observedGeneration": 1}})
