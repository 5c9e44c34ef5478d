import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pairchat.network.events import InboundEvent

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    WAITING = "WAITING"
    MATCHED = "MATCHED"
    IN_ROOM = "IN_ROOM"


@dataclass(frozen=True)
class ChatMessage:
    nickname: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"nickname": self.nickname, "message": self.message}

    @classmethod
    def from_payload(cls, payload: dict) -> Optional["ChatMessage"]:
        nickname = payload.get("nickname")
        message = payload.get("message")
        if not isinstance(nickname, str) or not isinstance(message, str):
            return None
        return cls(nickname=nickname, message=message)


@dataclass
class Session:
    nickname: str = ""
    status: SessionStatus = SessionStatus.DISCONNECTED
    waiting_count: int = 0
    room_id: Optional[str] = None
    participants: Optional[Tuple[str, ...]] = None
    messages: List[ChatMessage] = field(default_factory=list)

    @property
    def is_connected(self) -> bool:
        return self.status is not SessionStatus.DISCONNECTED

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of the record for the presentation layer."""
        return {
            "nickname": self.nickname,
            "status": self.status.value,
            "waitingCount": self.waiting_count,
            "roomId": self.room_id,
            "participants": list(self.participants) if self.participants is not None else None,
            "messages": [m.to_dict() for m in self.messages],
        }


class StateMachine:
    """
    Applies inbound server events to the Session record, one at a time.

    The server is authoritative: statusChange overwrites the status verbatim,
    even when it moves "backwards". The machine only refuses what would break
    the record's own invariants (malformed payloads, chat lines outside a room,
    anything but `connect` while disconnected).
    """

    def __init__(self):
        self.session = Session()

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    def start(self, nickname: str):
        # A new connection attempt always gets a fresh record
        self.session = Session(nickname=nickname)

    def reset(self) -> bool:
        """Disconnect transition. Returns False if nothing changed."""
        session = self.session
        was_clean = (
            session.status is SessionStatus.DISCONNECTED
            and session.waiting_count == 0
            and session.room_id is None
            and not session.messages
        )
        self.session = Session(nickname=session.nickname)
        return not was_clean

    def transition_to(self, new_status: SessionStatus):
        if new_status is SessionStatus.DISCONNECTED:
            self.reset()
            return
        if new_status is not SessionStatus.IN_ROOM:
            self.session.messages.clear()
        self.session.status = new_status

    def apply(self, event: str, payload: Optional[dict] = None) -> bool:
        """Apply one inbound event. Returns True if the record changed."""
        payload = payload or {}

        if event == InboundEvent.DISCONNECT:
            return self.reset()

        if event == InboundEvent.CONNECT:
            if self.session.is_connected:
                logger.debug(f"Ignoring connect signal while {self.status.value}")
                return False
            self.session.status = SessionStatus.CONNECTED
            return True

        if not self.session.is_connected:
            logger.debug(f"Dropping {event} received while disconnected")
            return False

        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"Ignoring unknown event {event!r}")
            return False
        return handler(self, payload)

    def _on_status_change(self, payload: dict) -> bool:
        raw = payload.get("status")
        try:
            new_status = SessionStatus(raw)
        except ValueError:
            logger.warning(f"statusChange with unknown status {raw!r} dropped")
            return False
        self.transition_to(new_status)
        return True

    def _on_waiting_count(self, payload: dict) -> bool:
        count = payload.get("count")
        # bool is an int subclass but never a valid count
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            logger.warning(f"waitingCount with invalid count {count!r} dropped")
            return False
        self.session.waiting_count = count
        return True

    def _on_matched(self, payload: dict) -> bool:
        self.transition_to(SessionStatus.MATCHED)
        return True

    def _on_joined_room(self, payload: dict) -> bool:
        room_id = payload.get("roomId")
        participants = payload.get("participants")
        if not isinstance(room_id, str) or not isinstance(participants, (list, tuple)):
            logger.warning("joinedRoom with malformed payload dropped")
            return False
        if not all(isinstance(p, str) for p in participants):
            logger.warning("joinedRoom with non-string participant dropped")
            return False

        session = self.session
        session.status = SessionStatus.IN_ROOM
        session.room_id = room_id
        session.participants = tuple(participants)
        session.messages = []
        return True

    def _on_new_message(self, payload: dict) -> bool:
        if self.session.status is not SessionStatus.IN_ROOM:
            logger.debug(f"newMessage outside a room dropped (status {self.status.value})")
            return False
        message = ChatMessage.from_payload(payload)
        if message is None:
            logger.warning("newMessage with malformed payload dropped")
            return False
        self.session.messages.append(message)
        return True

    _handlers = {
        InboundEvent.STATUS_CHANGE: _on_status_change,
        InboundEvent.WAITING_COUNT: _on_waiting_count,
        InboundEvent.MATCHED: _on_matched,
        InboundEvent.JOINED_ROOM: _on_joined_room,
        InboundEvent.NEW_MESSAGE: _on_new_message,
    }
