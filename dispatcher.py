from pydantic import ValidationError

from events import ERROR, JOIN
from logging_config import get_logger
from relay import Connection, SignalingRelay
from schemas.signaling import inbound_message_adapter

logger = get_logger(__name__)


def _describe(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


async def dispatch(relay: SignalingRelay, connection: Connection, raw: str):
    """Parse one inbound text frame and route it to the relay by message kind.

    Frames that do not parse are answered with an error event to the sender
    only; they never reach the other peer.
    """
    try:
        message = inbound_message_adapter.validate_json(raw)
    except ValidationError as e:
        detail = _describe(e)
        logger.warning(f"Rejected frame from connection {connection.connection_id}: {detail}")
        await relay.emit(connection, {"type": ERROR, "detail": f"Invalid message: {detail}"})
        return

    if message.type == JOIN:
        await relay.join(connection, message.room)
    else:
        await relay.relay(connection, message.room, message.type, message.payload)
