from __future__ import annotations

import json
import threading
import time

import pytest

from src.guard_attendance.guard_attendance.core.enums import Topic
from src.guard_attendance.guard_attendance.core.exceptions import ValidationError
from src.guard_attendance.guard_attendance.notifier.controller import handle_message
from src.guard_attendance.guard_attendance.notifier.hub import Notifier, parse_topic


class StuckSubscriber:
    """A socket whose writes hang until released."""

    def __init__(self):
        self.messages: list[str] = []
        self.started = threading.Event()
        self.release = threading.Event()

    def send(self, data: str) -> None:
        self.started.set()
        self.release.wait(timeout=5)
        self.messages.append(data)


@pytest.fixture
def notifier(clock):
    return Notifier(history=3, clock=clock)


@pytest.fixture
def stuck():
    sub = StuckSubscriber()
    yield sub
    sub.release.set()


def _types(sub):
    return [json.loads(m)["type"] for m in sub.messages]


def _wait_until(predicate, timeout=1.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_publish_reaches_only_topic_subscribers_in_order(notifier, make_subscriber):
    a, b, idle = make_subscriber(), make_subscriber(), make_subscriber()
    notifier.connect(idle)
    notifier.subscribe(a, Topic.ATTENDANCE)
    notifier.subscribe(b, Topic.EXCEPTIONS)

    notifier.publish(Topic.ATTENDANCE, {"n": 1})
    notifier.publish(Topic.EXCEPTIONS, {"n": 2})
    notifier.publish(Topic.ATTENDANCE, {"n": 3})
    assert notifier.flush()

    assert [json.loads(m)["data"]["n"] for m in a.messages] == [1, 3]
    assert _types(b) == ["exception_alert"]
    assert idle.messages == []


def test_message_envelope(notifier, make_subscriber, fixed_now):
    sub = make_subscriber()
    notifier.subscribe(sub, Topic.ATTENDANCE)
    notifier.publish(Topic.ATTENDANCE, {"id": "a1"})
    assert notifier.flush()
    assert json.loads(sub.messages[0]) == {
        "type": "attendance_update",
        "data": {"id": "a1"},
        "timestamp": fixed_now.isoformat(),
    }


def test_failing_subscriber_is_dropped_without_blocking_others(notifier, make_subscriber):
    broken, healthy = make_subscriber(broken=True), make_subscriber()
    notifier.subscribe(broken, Topic.ATTENDANCE)
    notifier.subscribe(healthy, Topic.ATTENDANCE)

    notifier.publish(Topic.ATTENDANCE, {})
    assert notifier.flush()

    assert len(healthy.messages) == 1
    assert notifier.subscriber_count(Topic.ATTENDANCE) == 1


def test_disconnect_removes_subscriptions(notifier, make_subscriber):
    sub = make_subscriber()
    notifier.subscribe(sub, Topic.ATTENDANCE)
    notifier.disconnect(sub)
    assert notifier.publish(Topic.ATTENDANCE, {}) == 0
    assert notifier.flush()
    assert sub.messages == []


def test_replay_is_bounded_by_history(notifier, make_subscriber):
    for n in range(5):
        notifier.publish(Topic.EXCEPTIONS, {"n": n})

    late = make_subscriber()
    assert notifier.subscribe(late, Topic.EXCEPTIONS, replay=10) == 3
    other = make_subscriber()
    assert notifier.subscribe(other, Topic.EXCEPTIONS) == 0
    assert notifier.flush()

    assert [json.loads(m)["data"]["n"] for m in late.messages] == [2, 3, 4]
    assert other.messages == []


def test_stuck_subscriber_does_not_delay_other_topics(notifier, make_subscriber, stuck):
    fast = make_subscriber()
    notifier.subscribe(stuck, Topic.ATTENDANCE)
    notifier.subscribe(fast, Topic.EXCEPTIONS)

    started = time.monotonic()
    notifier.publish(Topic.ATTENDANCE, {"n": 1})
    assert stuck.started.wait(timeout=1)
    notifier.publish(Topic.EXCEPTIONS, {"n": 2})
    assert time.monotonic() - started < 0.5

    assert _wait_until(lambda: len(fast.messages) == 1, timeout=0.5)
    assert stuck.messages == []


def test_stuck_subscriber_does_not_delay_same_topic(notifier, make_subscriber, stuck):
    fast = make_subscriber()
    notifier.subscribe(stuck, Topic.ATTENDANCE)
    notifier.subscribe(fast, Topic.ATTENDANCE)

    started = time.monotonic()
    for n in range(3):
        notifier.publish(Topic.ATTENDANCE, {"n": n})
    assert time.monotonic() - started < 0.5

    assert _wait_until(lambda: len(fast.messages) == 3, timeout=0.5)
    assert [json.loads(m)["data"]["n"] for m in fast.messages] == [0, 1, 2]


def test_overflowing_outbox_drops_the_subscriber(clock, stuck):
    notifier = Notifier(queue_size=2, send_timeout=60, clock=clock)
    notifier.subscribe(stuck, Topic.ATTENDANCE)

    assert notifier.publish(Topic.ATTENDANCE, {"n": 1}) == 1
    assert stuck.started.wait(timeout=1)
    assert notifier.publish(Topic.ATTENDANCE, {"n": 2}) == 1
    assert notifier.publish(Topic.ATTENDANCE, {"n": 3}) == 1

    assert notifier.publish(Topic.ATTENDANCE, {"n": 4}) == 0
    assert notifier.subscriber_count(Topic.ATTENDANCE) == 0


def test_send_stuck_past_timeout_drops_the_subscriber(clock, make_subscriber, stuck):
    notifier = Notifier(send_timeout=0.05, clock=clock)
    healthy = make_subscriber()
    notifier.subscribe(stuck, Topic.ATTENDANCE)
    notifier.subscribe(healthy, Topic.ATTENDANCE)

    notifier.publish(Topic.ATTENDANCE, {"n": 1})
    assert stuck.started.wait(timeout=1)
    time.sleep(0.1)

    assert notifier.publish(Topic.ATTENDANCE, {"n": 2}) == 1
    assert notifier.subscriber_count(Topic.ATTENDANCE) == 1
    assert _wait_until(lambda: len(healthy.messages) == 2)


def test_send_to_unknown_connection_is_refused(notifier, make_subscriber):
    assert notifier.send(make_subscriber(), {"type": "pong"}) is False


def test_parse_topic():
    assert parse_topic("attendance") == Topic.ATTENDANCE
    with pytest.raises(ValidationError):
        parse_topic("payroll")


def test_subscribe_frame_acknowledges_and_subscribes(container, make_subscriber):
    ws = make_subscriber()
    reply = handle_message(container, ws, json.dumps({"type": "subscribe", "data": {"channel": "exceptions"}}))

    assert reply is None
    assert container.notifier.flush()
    assert json.loads(ws.messages[0]) == {"type": "subscribed", "channel": "exceptions"}
    assert container.notifier.subscriber_count(Topic.EXCEPTIONS) == 1


def test_ack_precedes_replayed_history(container, make_subscriber):
    container.notifier.publish(Topic.ATTENDANCE, {"n": 1})
    ws = make_subscriber()
    container.notifier.connect(ws)
    handle_message(container, ws, json.dumps({"type": "subscribe", "data": {"channel": "attendance", "replay": 5}}))

    assert container.notifier.flush()
    assert _types(ws) == ["subscribed", "attendance_update"]


def test_top_level_channel_is_accepted(container, make_subscriber):
    ws = make_subscriber()
    handle_message(container, ws, json.dumps({"type": "subscribe", "channel": "attendance"}))
    assert container.notifier.subscriber_count(Topic.ATTENDANCE) == 1


def test_unknown_channel_and_ping(container, make_subscriber):
    ws = make_subscriber()
    error = handle_message(container, ws, json.dumps({"type": "subscribe", "data": {"channel": "nope"}}))
    assert error["type"] == "error"
    assert handle_message(container, ws, json.dumps({"type": "ping"})) == {"type": "pong"}
    assert handle_message(container, ws, "not json")["type"] == "error"
