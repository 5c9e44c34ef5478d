import asyncio
import logging
from typing import Callable, Optional, Protocol

import websockets

from pairchat.network.events import InboundEvent, decode_frame, encode_frame

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, dict], None]


class Transport(Protocol):
    """
    What the session manager needs from a channel: open it with a sink for
    inbound (event, data) pairs, emit named events, close it.
    The sink receives a synthetic `connect` once the channel is up and a
    synthetic `disconnect` when it dies on its own.
    """

    @property
    def is_connected(self) -> bool: ...

    async def connect(self, on_event: EventCallback) -> bool: ...

    async def emit(self, event: str, data: dict) -> None: ...

    async def disconnect(self) -> None: ...


class TransportLayer:
    def __init__(self, uri="ws://localhost:3010", open_timeout: float = 10.0):
        self.uri = uri
        self.open_timeout = open_timeout
        self.websocket = None
        self._listen_task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self.websocket is not None

    async def connect(self, on_event: EventCallback) -> bool:
        if self.websocket is not None:
            logger.warning("Transport already open, refusing a second connection")
            return False

        try:
            websocket = await websockets.connect(self.uri, open_timeout=self.open_timeout)
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            logger.error(f"Connection to {self.uri} failed: {e}")
            return False

        self.websocket = websocket
        logger.info(f"Connected to {self.uri}")
        on_event(InboundEvent.CONNECT, {})
        # Start listening loop
        self._listen_task = asyncio.create_task(self.listen(websocket, on_event))
        return True

    async def listen(self, websocket, on_event: EventCallback):
        try:
            async for message in websocket:
                decoded = decode_frame(message)
                if decoded is None:
                    continue
                event, data = decoded
                if event in (InboundEvent.CONNECT, InboundEvent.DISCONNECT):
                    # Lifecycle signals come from the socket, never from the peer
                    logger.warning(f"Ignoring server-sent lifecycle event {event!r}")
                    continue
                on_event(event, data)
        except websockets.exceptions.ConnectionClosed as e:
            logger.info(f"Connection closed: {e}")
        finally:
            # Still current means nobody called disconnect(): the far side went away
            if self.websocket is websocket:
                self.websocket = None
                self._listen_task = None
                logger.info(f"Lost connection to {self.uri}")
                on_event(InboundEvent.DISCONNECT, {})

    async def emit(self, event: str, data: dict):
        if not self.websocket:
            logger.debug(f"Dropping outbound {event}: transport not open")
            return
        try:
            await self.websocket.send(encode_frame(event, data))
        except websockets.exceptions.ConnectionClosed:
            # The listen loop reports the close
            logger.info(f"Outbound {event} lost, connection already closed")

    async def disconnect(self):
        websocket, self.websocket = self.websocket, None
        task, self._listen_task = self._listen_task, None
        if websocket is not None:
            await websocket.close()
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
