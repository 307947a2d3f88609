"""
FastAPI WebSocket server for Triple Seven.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from ..room import RoomRegistry
from ..rules import rules_from_env
from .router import MessageRouter

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Global state
registry = RoomRegistry(rules_from_env())
router = MessageRouter(registry)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await registry.close_all()
    logger.info("All rooms closed")


# FastAPI app
app = FastAPI(title="Triple Seven Game Server", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "rooms": len(registry.rooms),
        "connections": registry.connection_count(),
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint. One connection id per socket."""
    connection_id = str(uuid.uuid4())

    try:
        await websocket.accept()
        logger.info(f"WebSocket connection accepted: {connection_id}")

        while True:
            raw_data = await websocket.receive_text()
            await router.handle_message(connection_id, websocket, raw_data)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for {connection_id}: {e}")
    finally:
        await router.handle_disconnect(connection_id)
