from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from typing import List, Optional
import json
import logging
import os

from .utils.logging import setup
from .core.config import cfg, Cfg
from .models.schemas import ClientSummary, PresenceSnapshot
from .services.registry import Registry
from .services.session import SessionCoordinator
from .websockets.websocket_manager import ConnectionManager

logger = logging.getLogger(__name__)

setup(cfg.LOG_LEVEL)


def _handle_inbound(manager: ConnectionManager, token: str, raw: str):
    """Clients only talk to the server for keepalive; everything else is ignored."""
    try:
        msg = json.loads(raw)
    except json.JSONDecodeError:
        logger.debug(f"Ignoring non-JSON frame from connection {token[:8]}")
        return
    if isinstance(msg, dict) and msg.get("type") == "ping":
        manager.send(token, "pong")


def create_app(settings: Optional[Cfg] = None) -> FastAPI:
    settings = settings or cfg

    manager = ConnectionManager(outbox_max_size=settings.OUTBOX_MAX_SIZE)
    coordinator = SessionCoordinator(
        registry=Registry(),
        broadcaster=manager,
        countdown_s=settings.RESET_COUNTDOWN_S,
        tick_interval_s=settings.COUNTDOWN_TICK_S,
        broadcast_countdown_events=settings.BROADCAST_COUNTDOWN_EVENTS,
        broadcast_countdown_ticks=settings.BROADCAST_COUNTDOWN_TICKS,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Presence server ready (reset countdown {settings.RESET_COUNTDOWN_S}s)")
        yield
        # Shutdown
        coordinator.shutdown()
        await manager.close_all()

    app = FastAPI(title="Presence Hub", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.connections = manager
    app.state.presence = coordinator

    @app.websocket("/ws")
    async def presence_socket(websocket: WebSocket):
        token = await manager.connect(websocket)
        try:
            result = coordinator.on_connect(token)
            manager.send_user_id(token, result.assigned_id)
            while True:
                raw = await websocket.receive_text()
                _handle_inbound(manager, token, raw)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error(f"WebSocket error on connection {token[:8]}: {e}", exc_info=True)
        finally:
            manager.disconnect(token)
            coordinator.on_disconnect(token)

    @app.get("/api/presence", response_model=PresenceSnapshot)
    async def get_presence():
        return coordinator.snapshot()

    @app.get("/api/presence/clients", response_model=List[ClientSummary])
    async def get_clients():
        return coordinator.registry.list_clients()

    @app.get("/health")
    async def health():
        return {"status": "ok", "connections": len(manager.active_connections)}

    @app.get("/metrics")
    def get_metrics():
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    static_dir = settings.STATIC_DIR

    @app.get("/")
    async def index():
        """Serve the landing page."""
        index_path = os.path.join(static_dir, "index.html")
        if not os.path.isfile(index_path):
            return {"message": f"Put index.html in {static_dir}"}
        return FileResponse(index_path)

    if os.path.isdir(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning(f"Static directory {static_dir} not found. /static will not be available.")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=cfg.APP_PORT)
