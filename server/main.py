"""FastAPI WebSocket server for the UNO card game."""

import json
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from config import config
from connections import ConnectionManager
from handlers import ConnectionContext, dispatch, handle_disconnect
from identities import IdentityDirectory
from logging_config import connection_id_var, setup_logging
from room import RoomRegistry
from routers.health import router as health_router
from routers.rooms import router as rooms_router

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the process-wide registries on startup and tear them down on shutdown."""
    app.state.registry = RoomRegistry()
    app.state.connections = ConnectionManager()
    app.state.directory = IdentityDirectory()
    logger.info(f"UNO server started (environment={config.ENVIRONMENT})")

    yield

    logger.info("Shutdown initiated...")
    await app.state.connections.close_all()
    app.state.registry.close_all()
    logger.info("Shutdown complete")


app = FastAPI(
    title="UNO Card Game",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(rooms_router)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    connection_id = str(uuid.uuid4())
    connection_id_var.set(connection_id)
    logger.debug(f"WebSocket connected as {connection_id}")

    state = websocket.app.state
    ctx = ConnectionContext(websocket=websocket, connection_id=connection_id)
    state.connections.connect(connection_id, websocket)

    # Shared dependencies passed to every handler
    handler_deps = dict(
        registry=state.registry,
        connections=state.connections,
        directory=state.directory,
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await websocket.send_json({
                    "type": "error",
                    "code": "InvalidAction",
                    "message": "Malformed JSON",
                })
                continue
            await dispatch(data, ctx, **handler_deps)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket {connection_id} disconnected")
    finally:
        await handle_disconnect(ctx, **handler_deps)


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting UNO server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
