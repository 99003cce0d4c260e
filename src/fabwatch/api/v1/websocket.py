"""WebSocket endpoint for real-time monitoring updates.

Each connection owns a hub subscription. A sender task drains the
subscription queue to the socket while the receive loop answers client
requests; replies are queued on the same subscription, so every outbound
message goes through one bounded queue in order.
"""

import asyncio
import json
import uuid
from typing import Any

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from fabwatch.core.broadcast import Subscription, SubscriberHub, make_message
from fabwatch.core.monitor import ProcessMonitor

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["websocket"])


async def _pump(websocket: WebSocket, subscription: Subscription) -> None:
    """Forward queued messages to the socket until cancelled or send fails."""
    while True:
        message = await subscription.get()
        await websocket.send_json(message)


def _count(data: dict[str, Any], default: int | None) -> int | None:
    """Read an optional positive "count" field.

    Raises:
        ValueError: If the value is not a positive integer
    """
    value = data.get("count")
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid count: {value!r}")
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid count: {value!r}") from None
    if count < 1:
        raise ValueError(f"Invalid count: {value!r}")
    return count


def handle_client_message(
    data: Any, monitor: ProcessMonitor
) -> tuple[dict[str, Any] | None, str | None]:
    """Build the reply to one synchronous client request.

    Args:
        data: Decoded JSON message from the client
        monitor: Process monitor to query

    Returns:
        (reply, alert_id): the message to queue for this client (or None),
        and an alert ID to acknowledge when the request is an
        acknowledgment of a known alert
    """
    if not isinstance(data, dict):
        return make_message("error", {"message": "Message must be a JSON object"}), None

    message_type = data.get("type")
    try:
        return _dispatch(message_type, data, monitor)
    except ValueError as e:
        return make_message("error", {"message": str(e)}), None


def _dispatch(
    message_type: Any, data: dict[str, Any], monitor: ProcessMonitor
) -> tuple[dict[str, Any] | None, str | None]:
    if message_type == "ping":
        return make_message("pong", None), None

    if message_type == "get_history":
        count = _count(data, 100)
        readings = monitor.get_recent_readings(count)
        return make_message("history", [r.to_dict() for r in readings]), None

    if message_type == "get_alerts":
        count = _count(data, 100)
        alerts = monitor.get_recent_alerts(
            count, unacknowledged_only=bool(data.get("unacknowledged_only", False))
        )
        return make_message("alerts", [a.to_dict() for a in alerts]), None

    if message_type == "get_parameter_history":
        parameter = data.get("parameter")
        count = _count(data, None)
        series = None
        if isinstance(parameter, str):
            series = monitor.get_parameter_series(parameter, count)
        if series is None:
            return make_message("error", {"message": f"Unknown parameter: {parameter}"}), None
        return make_message("parameter_history", {
            "parameter": parameter,
            "points": [{"timestamp": ts.isoformat(), "value": v} for ts, v in series],
        }), None

    if message_type == "acknowledge_alert":
        alert_id = data.get("alert_id")
        if not isinstance(alert_id, str) or monitor.alerts.get(alert_id) is None:
            return make_message("error", {"message": f"Alert not found: {alert_id}"}), None
        # The alert_updated broadcast is the reply
        return None, alert_id

    return make_message("error", {"message": f"Unknown message type: {message_type}"}), None


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for real-time updates.

    Message Protocol:
        Client -> Server:
            - {"type": "ping"}
            - {"type": "get_history", "count": 100}
            - {"type": "get_alerts", "count": 100, "unacknowledged_only": false}
            - {"type": "get_parameter_history", "parameter": "temperature", "count": 50}
            - {"type": "acknowledge_alert", "alert_id": "..."}

        Server -> Client (all as {"type": ..., "payload": ...}):
            - init: parameters, lines, recent readings and alerts (always first)
            - reading, new_alert, alert_updated, drift_reset
            - pong, history, alerts, parameter_history
            - error: {"message": "..."}
    """
    app_state = websocket.app.state
    monitor: ProcessMonitor = app_state.monitor
    hub: SubscriberHub = app_state.hub
    settings = app_state.settings

    await websocket.accept()
    connection_id = str(uuid.uuid4())
    subscription = hub.subscribe(
        connection_id,
        monitor.snapshot(readings=settings.snapshot_readings, alerts=settings.snapshot_alerts),
    )
    sender = asyncio.create_task(_pump(websocket, subscription))

    try:
        while True:
            text = await websocket.receive_text()
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                logger.warning("websocket_invalid_message", connection_id=connection_id, error=str(e))
                subscription.offer(make_message("error", {"message": "Invalid JSON"}))
                continue
            reply, alert_id = handle_client_message(data, monitor)
            if reply is not None:
                subscription.offer(reply)
            if alert_id is not None:
                await monitor.acknowledge_alert(alert_id)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("websocket_connection_error", connection_id=connection_id)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close(code=1011)
    finally:
        hub.unsubscribe(connection_id)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.info("websocket_send_failed", connection_id=connection_id, error=str(e))
