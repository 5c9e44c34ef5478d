import json
import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class InboundEvent:
    # Synthesised by the transport from the socket lifecycle
    CONNECT = "connect"
    DISCONNECT = "disconnect"

    STATUS_CHANGE = "statusChange"
    WAITING_COUNT = "waitingCount"
    MATCHED = "matched"
    JOINED_ROOM = "joinedRoom"
    NEW_MESSAGE = "newMessage"


class OutboundEvent:
    JOIN_QUEUE = "joinQueue"
    SEND_MESSAGE = "sendMessage"


def encode_frame(event: str, data: Optional[dict] = None) -> str:
    return json.dumps({"event": event, "data": data or {}}, ensure_ascii=False)


def decode_frame(raw) -> Optional[Tuple[str, dict]]:
    """
    Parses one text frame into (event, data).
    Returns None for anything that is not a {"event": str, "data": object} envelope.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("Dropping frame that is not valid UTF-8")
            return None
    try:
        envelope = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Dropping frame that is not valid JSON")
        return None

    if not isinstance(envelope, dict):
        logger.warning("Dropping frame that is not a JSON object")
        return None
    event = envelope.get("event")
    if not isinstance(event, str) or not event:
        logger.warning("Dropping frame without an event name")
        return None
    data = envelope.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        logger.warning(f"Dropping {event} frame with non-object data")
        return None
    return event, data
