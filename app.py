import json
import uuid
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from constants import ALLOWED_ORIGIN, LOG_FILE, LOG_LEVEL, NOTIFY_PEER_LEFT
from dispatcher import dispatch
from events import ERROR
from logging_config import get_logger, setup_logging
from relay import Connection, SignalingRelay
from routers.rooms import rooms_router
from schemas.rooms import HealthResponse

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


class WebSocketConnection(Connection):
    """A relay connection backed by a FastAPI WebSocket, one JSON object per text frame."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        super().__init__(connection_id or str(uuid.uuid4()))
        self.websocket = websocket

    async def send(self, message: dict):
        await self.websocket.send_text(json.dumps(message, allow_nan=False))


def create_app(relay: Optional[SignalingRelay] = None) -> FastAPI:
    app = FastAPI(title="Signaling Relay")
    app.state.relay = relay if relay is not None else SignalingRelay(notify_peer_left=NOTIFY_PEER_LEFT)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[ALLOWED_ORIGIN],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(status="ok", rooms=len(app.state.relay.registry))

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Signaling channel for one peer.

        The peer sends join/offer/answer/ice-candidate frames; the relay answers
        with created/joined/full/ready and forwards negotiation frames to the
        other member of the room. Closing the socket leaves the room.
        """
        relay: SignalingRelay = app.state.relay
        await websocket.accept()
        connection = WebSocketConnection(websocket)
        client = websocket.client.host if websocket.client else "unknown"
        logger.info(f"WebSocket connection {connection.connection_id} accepted from {client}")

        message_count = 0
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                message_count += 1
                logger.debug(f"Received frame #{message_count} from connection {connection.connection_id}")

                data = message.get("text")
                if data is None:
                    logger.warning(f"Rejected binary frame from connection {connection.connection_id}")
                    await relay.emit(
                        connection, {"type": ERROR, "detail": "Invalid message: binary frames are not supported"}
                    )
                    continue
                await dispatch(relay, connection, data)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
        except Exception as e:
            logger.error(f"Error on connection {connection.connection_id}: {e}", exc_info=True)
        finally:
            await relay.leave(connection)
            logger.debug(f"Connection {connection.connection_id} closed after {message_count} frame(s)")
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
