import asyncio
import logging
from typing import Callable, Optional

from pairchat.core.state_machine import Session, SessionStatus, StateMachine
from pairchat.network.events import InboundEvent, OutboundEvent
from pairchat.network.transport import Transport
from pairchat.utils.error_codes import ErrorCodes, PairChatError
from pairchat.utils.validators import validate_message_length, validate_nickname

logger = logging.getLogger(__name__)

UiCallback = Callable[..., None]


class SessionManager:
    """
    Drives one matchmaking session over one transport.

    Outbound intents are validated locally and forwarded; nothing waits for a
    reply. Inbound events go through a single queue and are applied to the
    state machine one at a time, in arrival order, by a drain task.
    """

    def __init__(self, transport: Transport, ui_callback: Optional[UiCallback] = None,
                 max_message_length: int = 0):
        self.state_machine = StateMachine()
        self.transport = transport
        self.ui_callback = ui_callback
        self.max_message_length = max_message_length
        self._inbox: Optional[asyncio.Queue] = None
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def session(self) -> Session:
        return self.state_machine.session

    @property
    def status(self) -> SessionStatus:
        return self.state_machine.status

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.disconnect()

    async def connect(self, nickname: str):
        if not validate_nickname(nickname):
            raise PairChatError(ErrorCodes.ERR_INVALID_NICKNAME, "Nickname must not be empty")
        if self.status is not SessionStatus.DISCONNECTED or self._inbox is not None:
            raise PairChatError(ErrorCodes.ERR_SESSION_ACTIVE, "Disconnect before connecting again")
        if self._drain_task is not None:
            # The previous session is still releasing its transport
            await self._drain_task

        self.state_machine.start(nickname)
        inbox: asyncio.Queue = asyncio.Queue()
        self._inbox = inbox
        self._drain_task = asyncio.create_task(self._drain_loop(inbox))

        # Each connection gets its own sink so a dead transport can't feed a newer session
        try:
            success = await self.transport.connect(lambda event, data: inbox.put_nowait((event, data)))
        except BaseException:
            await self.disconnect()
            raise
        if not success:
            await self.disconnect()
            raise PairChatError(ErrorCodes.ERR_NETWORK, "Could not connect to matchmaking server")

    async def disconnect(self):
        inbox, task = self._inbox, self._drain_task
        self._inbox = None
        self._drain_task = None

        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if inbox is not None:
            self._discard(inbox)

        await self.transport.disconnect()
        if self.state_machine.reset():
            self._notify("DISCONNECTED")

    async def join_queue(self) -> bool:
        # No local status gate: the server decides whether joining is legal
        if not self.transport.is_connected:
            logger.info("joinQueue dropped: no open transport")
            return False
        await self.transport.emit(OutboundEvent.JOIN_QUEUE, {"nickname": self.session.nickname})
        return True

    async def send_message(self, text: str) -> bool:
        if not text or not text.strip():
            return False
        if not validate_message_length(text, self.max_message_length):
            self._notify("ERROR", f"Message longer than {self.max_message_length} characters")
            return False
        if not self.transport.is_connected:
            logger.info("sendMessage dropped: no open transport")
            return False

        # Not appended locally: the line shows up when the server echoes newMessage
        await self.transport.emit(OutboundEvent.SEND_MESSAGE, {
            "message": text,
            "nickname": self.session.nickname,
        })
        return True

    async def drain(self):
        """Wait until every inbound event queued so far has been applied."""
        inbox = self._inbox
        if inbox is not None:
            await inbox.join()

    async def _drain_loop(self, inbox: asyncio.Queue):
        while True:
            event, data = await inbox.get()
            try:
                self._handle(event, data)
            finally:
                inbox.task_done()
            if self.status is SessionStatus.DISCONNECTED:
                break

        # The session ended from the far side; release what is left of it
        self._discard(inbox)
        if self._inbox is inbox:
            self._inbox = None
            await self.transport.disconnect()
        if self._drain_task is asyncio.current_task():
            self._drain_task = None

    def _handle(self, event: str, data: dict):
        if not self.state_machine.apply(event, data):
            return

        session = self.session
        if session.status is SessionStatus.DISCONNECTED:
            self._notify("DISCONNECTED")
        elif event == InboundEvent.CONNECT:
            self._notify("CONNECTED")
        elif event == InboundEvent.STATUS_CHANGE:
            self._notify("STATUS", session.status)
        elif event == InboundEvent.WAITING_COUNT:
            self._notify("WAITING_COUNT", session.waiting_count)
        elif event == InboundEvent.MATCHED:
            self._notify("MATCHED")
        elif event == InboundEvent.JOINED_ROOM:
            self._notify("JOINED_ROOM", (session.room_id, session.participants))
        elif event == InboundEvent.NEW_MESSAGE:
            self._notify("MESSAGE", session.messages[-1])

    def _notify(self, event_type: str, data=None):
        if not self.ui_callback:
            return
        try:
            self.ui_callback(event_type, data)
        except Exception:
            logger.exception(f"UI callback failed on {event_type}")

    @staticmethod
    def _discard(inbox: asyncio.Queue):
        # Keeps drain() waiters from hanging on events that will never be applied
        while True:
            try:
                inbox.get_nowait()
            except asyncio.QueueEmpty:
                break
            inbox.task_done()
