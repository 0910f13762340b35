"""In-process publish/subscribe hub for the /ws endpoint.

Delivery is best-effort and at-most-once. Every connection owns a bounded
outbox drained by its own writer thread, so publishing only enqueues and a
slow socket holds up nobody but itself. A connection whose send fails, whose
outbox overflows, or whose current send has been stuck longer than the send
timeout is dropped.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional, Protocol, Set

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_NOTIFIER_HISTORY, DEFAULT_NOTIFIER_QUEUE, DEFAULT_NOTIFIER_SEND_TIMEOUT
from ..core.enums import Topic
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

MESSAGE_TYPES = {
    Topic.ATTENDANCE: "attendance_update",
    Topic.EXCEPTIONS: "exception_alert",
}


class Subscriber(Protocol):
    def send(self, data: str) -> None:
        raise NotImplementedError


def parse_topic(channel: Any) -> Topic:
    try:
        return Topic(channel)
    except ValueError:
        raise ValidationError(f"Unknown channel: {channel}")


class Outbox:
    """Ordered outbound queue for one connection."""

    def __init__(
        self,
        conn: Subscriber,
        *,
        maxsize: int,
        send_timeout: float,
        on_dead: Callable[[Subscriber, str], None],
    ):
        self.conn = conn
        self.alive = True
        self._queue: "queue.Queue[str]" = queue.Queue(maxsize=max(1, maxsize))
        self._send_timeout = send_timeout
        self._on_dead = on_dead
        self._sending_since: Optional[float] = None
        self._pending = 0
        self._idle = threading.Condition()
        self._thread = threading.Thread(target=self._run, name="ws-outbox", daemon=True)
        self._thread.start()

    def offer(self, message: str) -> bool:
        """Enqueue without blocking. False means the connection must be dropped."""
        if not self.alive:
            return False
        started = self._sending_since
        if started is not None and time.monotonic() - started > self._send_timeout:
            self._kill("send timed out")
            return False
        with self._idle:
            self._pending += 1
        try:
            self._queue.put_nowait(message)
        except queue.Full:
            self._done()
            self._kill("outbox full")
            return False
        return True

    def flush(self, timeout: float) -> bool:
        """Wait until everything queued so far has been written."""
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def close(self) -> None:
        self.alive = False

    def _run(self) -> None:
        while self.alive:
            try:
                message = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                if self.alive:
                    self._sending_since = time.monotonic()
                    self.conn.send(message)
            except Exception as e:
                self._kill(f"failed send: {e}")
            finally:
                self._sending_since = None
                self._done()
        # release anyone flushing a dead outbox
        with self._idle:
            self._pending = 0
            self._idle.notify_all()

    def _done(self) -> None:
        with self._idle:
            self._pending -= 1
            self._idle.notify_all()

    def _kill(self, reason: str) -> None:
        if not self.alive:
            return
        self.alive = False
        self._on_dead(self.conn, reason)


class Notifier:
    def __init__(
        self,
        *,
        history: int = DEFAULT_NOTIFIER_HISTORY,
        queue_size: int = DEFAULT_NOTIFIER_QUEUE,
        send_timeout: float = DEFAULT_NOTIFIER_SEND_TIMEOUT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._outboxes: Dict[Subscriber, Outbox] = {}
        # connection -> subscribed topics
        self._subscriptions: Dict[Subscriber, Set[Topic]] = {}
        self._history: Dict[Topic, Deque[str]] = {t: deque(maxlen=max(0, history)) for t in Topic}
        # guards the registry and history; held only while enqueueing, never while writing.
        # Reentrant because a failed offer drops the connection under the lock.
        self._lock = threading.RLock()
        self._queue_size = queue_size
        self._send_timeout = send_timeout
        self._clock = clock

    def connect(self, conn: Subscriber) -> None:
        with self._lock:
            self._ensure(conn)

    def disconnect(self, conn: Subscriber) -> None:
        with self._lock:
            self._subscriptions.pop(conn, None)
            outbox = self._outboxes.pop(conn, None)
        if outbox is not None:
            outbox.close()

    def subscriber_count(self, topic: Topic) -> int:
        with self._lock:
            return sum(1 for topics in self._subscriptions.values() if topic in topics)

    def send(self, conn: Subscriber, payload: Any) -> bool:
        """Queue a direct frame (ack, pong, error) behind anything already queued."""
        message = payload if isinstance(payload, str) else json.dumps(payload, default=str)
        with self._lock:
            outbox = self._outboxes.get(conn)
            ok = outbox is not None and outbox.offer(message)
        return ok

    def subscribe(self, conn: Subscriber, topic: Topic, *, replay: int = 0, ack: Any = None) -> int:
        """Add `topic` to the connection's subscriptions.

        `ack` is queued first, then up to `replay` of the most recent
        messages on the topic. Returns the number replayed.
        """
        with self._lock:
            outbox = self._ensure(conn)
            self._subscriptions[conn].add(topic)
            backlog = list(self._history[topic])[-replay:] if replay > 0 else []
            if ack is not None and not outbox.offer(json.dumps(ack, default=str)):
                return 0
            for message in backlog:
                if not outbox.offer(message):
                    return 0
            return len(backlog)

    def publish(self, topic: Topic, payload: Any) -> int:
        """Queue `payload` for every subscriber of `topic`; returns how many accepted it."""
        message = self.encode(topic, payload)
        with self._lock:
            self._history[topic].append(message)
            targets: List[Outbox] = [
                self._outboxes[c] for c, topics in self._subscriptions.items() if topic in topics
            ]
            queued = sum(1 for outbox in targets if outbox.offer(message))
        logger.debug("Published %s to %d subscriber(s)", MESSAGE_TYPES[topic], queued)
        return queued

    def flush(self, timeout: float = 2.0) -> bool:
        """Wait for every outbox to drain; used on shutdown and in tests."""
        with self._lock:
            outboxes = list(self._outboxes.values())
        deadline = time.monotonic() + timeout
        return all(o.flush(max(0.0, deadline - time.monotonic())) for o in outboxes)

    def encode(self, topic: Topic, payload: Any) -> str:
        return json.dumps(
            {"type": MESSAGE_TYPES[topic], "data": payload, "timestamp": self._clock().isoformat()},
            default=str,
        )

    def _ensure(self, conn: Subscriber) -> Outbox:
        outbox = self._outboxes.get(conn)
        if outbox is None:
            outbox = Outbox(
                conn,
                maxsize=self._queue_size,
                send_timeout=self._send_timeout,
                on_dead=self._drop,
            )
            self._outboxes[conn] = outbox
            self._subscriptions[conn] = set()
        return outbox

    def _drop(self, conn: Subscriber, reason: str) -> None:
        logger.warning("Dropping subscriber: %s", reason)
        self.disconnect(conn)
