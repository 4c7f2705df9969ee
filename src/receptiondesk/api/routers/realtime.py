"""
Websocket relay endpoint.

One socket per browser tab. Frames from the client:
  {"type": "join-doctor", "doctorId": "..."}
  {"type": "leave-doctor", "doctorId": "..."}
  {"type": "ping"}
Server frames are acknowledgements (joined, left, pong), ``error`` for a
malformed frame or doctor id, and the relayed events
``{"event": "appointment-update" | "queue-update", "data": {...}}``.
"""

import json
import logging

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect

from ...core.config import get_settings
from ...domain.errors import InvalidIdentifierError
from ...domain.value_objects import ObjectRef
from ..utils.responses import ok

router = APIRouter(tags=["Realtime"])
logger = logging.getLogger("receptiondesk")

JOIN = "join-doctor"
LEAVE = "leave-doctor"
PING = "ping"


@router.get("/socket", summary="Relay status")
async def relay_status(request: Request):
    relay = request.app.state.relay
    return ok(
        request,
        message="Relay running" if get_settings().relay.enabled else "Relay disabled",
        enabled=get_settings().relay.enabled,
        rooms=relay.rooms(),
        sessions=relay.session_count,
    )


@router.websocket("/socket")
async def relay_socket(websocket: WebSocket):
    relay = websocket.app.state.relay
    if not get_settings().relay.enabled:
        await websocket.close(code=1013)
        return

    await websocket.accept()
    client = websocket.client.host if websocket.client else "unknown"
    logger.info("[Relay] Socket connected from %s", client)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Frame is not valid JSON"})
                continue
            if not isinstance(frame, dict):
                await websocket.send_json({"type": "error", "message": "Frame must be a JSON object"})
                continue

            frame_type = frame.get("type")
            if frame_type == PING:
                await websocket.send_json({"type": "pong"})
            elif frame_type in (JOIN, LEAVE):
                try:
                    doctor_id = ObjectRef.parse(frame.get("doctorId"), "doctorId").value
                except InvalidIdentifierError as e:
                    await websocket.send_json(
                        {"type": "error", "message": e.message, "doctorId": frame.get("doctorId")}
                    )
                    continue
                if frame_type == JOIN:
                    relay.join(websocket, doctor_id)
                    await websocket.send_json({"type": "joined", "doctorId": doctor_id})
                else:
                    relay.leave(websocket, doctor_id)
                    await websocket.send_json({"type": "left", "doctorId": doctor_id})
            else:
                await websocket.send_json({"type": "error", "message": f"Unknown frame type '{frame_type}'"})
    except WebSocketDisconnect:
        logger.info("[Relay] Socket from %s disconnected", client)
    finally:
        relay.leave_all(websocket)
