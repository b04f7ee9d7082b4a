import json
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from backend import BrokerBackend
from broker.errors import InvalidPayload, Oversize
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL, MAX_FRAME_BYTES
from logging_config import get_logger, setup_logging
from routers.rooms import rooms_router
from routers.status import status_router
from schemas.events import InboundFrame

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


def create_app(backend: Optional[BrokerBackend] = None, max_frame_bytes: int = MAX_FRAME_BYTES) -> FastAPI:
    app = FastAPI(title="PairChat broker")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms_router)
    app.include_router(status_router)

    # One backend per process: every registry, queue and room lives here
    app.state.backend = backend or BrokerBackend()
    app.state.max_frame_bytes = max_frame_bytes

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """Participant channel. Frames are JSON objects: {"event": ..., "data": ...}."""
        broker: BrokerBackend = websocket.app.state.backend
        limit = websocket.app.state.max_frame_bytes

        await websocket.accept()
        connection_id = broker.attach(websocket)
        logger.info(f"WebSocket connection accepted: {connection_id}")

        message_count = 0
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                message_count += 1

                data = message.get("text")
                raw = data.encode("utf-8") if data is not None else (message.get("bytes") or b"")
                if len(raw) > limit:
                    logger.warning(f"Rejected frame #{message_count} from {connection_id}: {len(raw)} bytes over limit")
                    broker.send_error(connection_id, Oversize.message)
                    continue

                try:
                    if data is None:
                        raise ValueError("binary frame")
                    frame = InboundFrame.model_validate(json.loads(data))
                except (ValueError, ValidationError):
                    logger.warning(f"Malformed frame #{message_count} from connection {connection_id}")
                    broker.send_error(connection_id, InvalidPayload("Malformed frame").message)
                    continue

                logger.debug(f"Received {frame.event} (#{message_count}) from connection {connection_id}")
                broker.handle(connection_id, frame.event, frame.data)

        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected normally for connection {connection_id}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        finally:
            await broker.detach(connection_id)
            logger.info(f"Connection {connection_id} cleaned up after {message_count} frames")

            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
