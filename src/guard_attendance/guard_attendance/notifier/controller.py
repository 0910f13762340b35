from __future__ import annotations

import json
import logging

from flask import Flask
from flask_sock import Sock
from simple_websocket import ConnectionClosed

from ..common.datetime_utils import now_local
from ..container import Container
from ..core.exceptions import ValidationError
from .hub import parse_topic

logger = logging.getLogger(__name__)

MAX_REPLAY = 100


def register(app: Flask, container: Container) -> Sock:
    sock = Sock(app)
    notifier = container.notifier

    @sock.route("/ws")
    def realtime(ws):
        notifier.connect(ws)
        logger.info("WebSocket client connected")
        try:
            notifier.send(ws, {"type": "connected", "timestamp": now_local().isoformat()})
            while True:
                raw = ws.receive()
                if raw is None:
                    continue
                reply = handle_message(container, ws, raw)
                if reply is not None and not notifier.send(ws, reply):
                    break
        except ConnectionClosed:
            logger.info("WebSocket client disconnected")
        finally:
            notifier.disconnect(ws)

    return sock


def handle_message(container: Container, ws, raw: str):
    """Answer one client frame; returns the reply dict or None."""

    try:
        message = json.loads(raw)
    except ValueError:
        return {"type": "error", "message": "Invalid JSON"}
    if not isinstance(message, dict):
        return {"type": "error", "message": "Invalid message"}

    kind = message.get("type")
    if kind == "ping":
        return {"type": "pong"}
    if kind != "subscribe":
        return {"type": "error", "message": f"Unknown message type: {kind}"}

    data = message.get("data") if isinstance(message.get("data"), dict) else {}
    channel = data.get("channel", message.get("channel"))
    try:
        topic = parse_topic(channel)
    except ValidationError as e:
        return {"type": "error", "message": str(e)}

    replay = data.get("replay", 0)
    if isinstance(replay, bool) or not isinstance(replay, int) or replay < 0:
        replay = 0
    # the ack goes through the same outbox, ahead of any replayed history
    container.notifier.subscribe(
        ws,
        topic,
        replay=min(replay, MAX_REPLAY),
        ack={"type": "subscribed", "channel": topic.value},
    )
    return None
