from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from contextlib import asynccontextmanager
from backend import RoomRegistry
from broker import RoomBroker
from connection import WebSocketConnection
from constants import LOG_LEVEL, LOG_FILE, OUTBOUND_QUEUE_SIZE, PORT
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Signaling server is running on port {PORT}...")
    yield
    logger.info(f"Signaling server shutting down with {len(app.state.broker.registry)} active room(s)")


async def websocket_endpoint(websocket: WebSocket):
    """Relay signaling messages for one peer until it disconnects."""
    broker: RoomBroker = websocket.app.state.broker

    await websocket.accept()
    connection = WebSocketConnection(websocket, max_queue_size=OUTBOUND_QUEUE_SIZE)
    connection.start()
    broker.on_connect(connection)

    try:
        while True:
            event = await websocket.receive()
            if event["type"] == "websocket.disconnect":
                logger.debug(f"WebSocket closed by client {connection.connection_id} (code {event.get('code')})")
                break

            raw = event.get("text")
            if raw is None:
                raw = event.get("bytes")
            if raw is None:
                continue
            broker.on_message(connection, raw)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket disconnected for connection {connection.connection_id}")
    except Exception as e:
        logger.error(f"Error receiving from connection {connection.connection_id}: {e}", exc_info=True)
    finally:
        broker.on_disconnect(connection)
        await connection.close()


def create_app(broker: RoomBroker = None) -> FastAPI:
    """Build the application around its own broker and room registry."""
    app = FastAPI(title="Rendezvous Relay", lifespan=lifespan)
    app.state.broker = broker if broker is not None else RoomBroker(RoomRegistry())

    # The root path is what existing clients connect to; /ws is an alias.
    app.add_api_websocket_route("/", websocket_endpoint)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    logger.info("FastAPI application initialized")
    return app


app = create_app()
