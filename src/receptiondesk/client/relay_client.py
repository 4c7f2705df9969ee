"""
Python subscriber for the /api/socket relay.

Mirrors what the browser dashboard does: connect once, join the room of the
doctor being viewed, hand every ``appointment-update`` / ``queue-update``
payload to a callback, and re-join after the connection is re-established.

Usage::

    client = RelayClient("ws://localhost:8000/api/socket")
    await client.connect()
    await client.subscribe(doctor_id, on_appointment_update=print)
    ...
    await client.disconnect()
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import aiohttp

from ..application.ports.services.realtime_publisher import APPOINTMENT_UPDATE, QUEUE_UPDATE
from ..core.config import RelaySettings
from ..domain.value_objects import ObjectRef

logger = logging.getLogger(__name__)

EventCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


class RelayClient:
    """Websocket subscriber with bounded exponential reconnect."""

    def __init__(
        self,
        url: str,
        settings: Optional[RelaySettings] = None,
        session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        settings = settings or RelaySettings()
        self.url = url
        self.handshake_timeout = settings.handshake_timeout_seconds
        self.reconnect_attempts = settings.reconnect_attempts
        self.reconnect_delay = settings.reconnect_delay_seconds
        self.max_reconnect_delay = settings.max_reconnect_delay_seconds

        self._session_factory = session_factory or aiohttp.ClientSession
        self._sleep = sleep
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None
        self._connecting = False
        self._closing = False

        self._doctor_id: Optional[str] = None
        self._callbacks: Dict[str, Optional[EventCallback]] = {APPOINTMENT_UPDATE: None, QUEUE_UPDATE: None}

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    @property
    def connecting(self) -> bool:
        return self._connecting

    @property
    def doctor_id(self) -> Optional[str]:
        return self._doctor_id

    def backoff_delay(self, attempt: int) -> float:
        """Delay before reconnect attempt (1-based), doubling up to the configured maximum."""
        return min(self.reconnect_delay * (2 ** (attempt - 1)), self.max_reconnect_delay)

    async def connect(self) -> None:
        """Open the socket; raises on handshake failure or timeout."""
        if self.connected or self._connecting:
            return
        self._closing = False
        try:
            await self._open()
        except Exception:
            # No reader owns the session yet
            await self._close_session()
            raise
        self._reader = asyncio.create_task(self._run())

    async def subscribe(
        self,
        doctor_id: str,
        on_appointment_update: Optional[EventCallback] = None,
        on_queue_update: Optional[EventCallback] = None,
    ) -> None:
        """Join the doctor's room, leaving the previous one, and register the callbacks."""
        canonical = ObjectRef.parse(doctor_id, "doctorId").value
        self._callbacks[APPOINTMENT_UPDATE] = on_appointment_update
        self._callbacks[QUEUE_UPDATE] = on_queue_update

        previous, self._doctor_id = self._doctor_id, canonical
        if not self.connected:
            # Joined on the next (re)connect
            return
        if previous and previous != canonical:
            await self._send({"type": "leave-doctor", "doctorId": previous})
        if previous != canonical:
            await self._send({"type": "join-doctor", "doctorId": canonical})

    async def disconnect(self) -> None:
        """Leave the room and close the socket; no reconnect follows."""
        self._closing = True
        if self.connected and self._doctor_id:
            try:
                await self._send({"type": "leave-doctor", "doctorId": self._doctor_id})
            except (aiohttp.ClientError, ConnectionError, RuntimeError) as e:
                logger.debug("Leave before disconnect failed: %s", e)
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        await self._close_session()
        logger.info("Relay client disconnected from %s", self.url)

    async def _close_session(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _open(self) -> None:
        self._connecting = True
        try:
            if self._session is None or self._session.closed:
                self._session = self._session_factory()
            self._ws = await asyncio.wait_for(
                self._session.ws_connect(self.url, heartbeat=30.0), timeout=self.handshake_timeout
            )
            logger.info("🔗 Relay client connected to %s", self.url)
            if self._doctor_id:
                await self._send({"type": "join-doctor", "doctorId": self._doctor_id})
        finally:
            self._connecting = False

    async def _send(self, frame: Dict[str, Any]) -> None:
        if self._ws is None:
            raise ConnectionError("Relay client is not connected")
        await self._ws.send_json(frame)

    async def _run(self) -> None:
        while True:
            ws = self._ws
            if ws is None:
                return
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    await self._handle_text(msg.data)
                elif msg.type in (aiohttp.WSMsgType.ERROR, aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED):
                    break

            if self._closing:
                return
            logger.warning("Relay connection to %s dropped", self.url)
            self._ws = None
            if not await self._reconnect():
                return

    async def _reconnect(self) -> bool:
        for attempt in range(1, self.reconnect_attempts + 1):
            delay = self.backoff_delay(attempt)
            logger.info(
                "Reconnecting to %s in %.1fs (attempt %d/%d)", self.url, delay, attempt, self.reconnect_attempts
            )
            await self._sleep(delay)
            if self._closing:
                return False
            try:
                await self._open()
                return True
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                logger.warning("Reconnect attempt %d failed: %s", attempt, e)
        logger.error("Giving up on relay %s after %d attempts", self.url, self.reconnect_attempts)
        return False

    async def _handle_text(self, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring non-JSON relay frame")
            return
        if not isinstance(message, dict):
            return

        event = message.get("event")
        if event is None:
            if message.get("type") == "error":
                logger.warning("Relay rejected a frame: %s", message.get("message"))
            return

        callback = self._callbacks.get(event)
        if callback is None:
            return
        try:
            result = callback(message.get("data") or {})
            if inspect.isawaitable(result):
                await result
        except Exception as e:  # noqa: BLE001
            logger.error("Relay callback for %s failed: %s", event, e, exc_info=True)
