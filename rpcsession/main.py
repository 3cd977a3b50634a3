#!/usr/bin/env python3
"""
rpcsession - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Serves the RPC surface over HTTP and WebSocket

All session logic is in the modules, following black box principles.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Header, Request, WebSocket, WebSocketDisconnect

from rpcsession import __version__
from rpcsession.config import ConfigProvider, EnvConfigProvider
from rpcsession.logging_config import configure_logging, get_logging_config
from rpcsession.modules.auth import AuthModule
from rpcsession.modules.rpc import RpcDispatcher, SessionManager
from rpcsession.modules.session import SessionStore

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """Connection handle handed to sessions; pushes go out as text frames."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def send(self, text: str) -> None:
        await self.websocket.send_text(text)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - start and stop session expiry.
    """
    store: SessionStore = app.state.store

    logger.info("Starting rpcsession...")
    store.start()

    yield

    logger.info("Shutting down rpcsession...")
    await store.shutdown()
    logger.info("rpcsession shutdown complete")


def create_app(config_provider: Optional[ConfigProvider] = None) -> FastAPI:
    """
    Build the application and wire its modules.

    Args:
        config_provider: Configuration source (environment by default)

    Returns:
        FastAPI application with store, manager and dispatcher on ``app.state``
    """
    config_provider = config_provider or EnvConfigProvider()
    session_config = config_provider.get_session_config()

    store = SessionStore(timeout=session_config.timeout, sweep_interval=session_config.sweep_interval)
    manager = SessionManager(store)
    auth_module = AuthModule.from_config(
        config_provider.get_auth_config(), session_prefix=session_config.prefix
    )

    dispatcher = RpcDispatcher(auth=manager)
    manager.register_rpc_methods(dispatcher, prefix=session_config.prefix)
    auth_module.register_rpc_methods(dispatcher)

    app = FastAPI(
        title="rpcsession",
        description="Session lifecycle and push messaging for RPC clients",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.manager = manager
    app.state.auth_module = auth_module
    app.state.dispatcher = dispatcher

    @app.post("/rpc")
    async def rpc_call(
        request: Request,
        x_session_token: Optional[str] = Header(None, description="Session token"),
    ) -> Dict[str, Any]:
        """
        Handle a single request envelope.

        Push messages cannot be delivered over plain HTTP; use /ws for those.
        """
        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None

        if isinstance(payload, dict) and x_session_token and not payload.get("token"):
            payload["token"] = x_session_token

        return await dispatcher.handle(payload if payload is not None else body)

    @app.websocket("/ws")
    async def rpc_socket(websocket: WebSocket):
        """
        Request/response over a WebSocket that also carries push messages.

        Each request attaches this socket to the calling session. Requests may
        arrive as text or binary frames; responses are always text.
        """
        await websocket.accept()
        connection = WebSocketConnection(websocket)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))

                payload = message.get("text")
                if payload is None:
                    payload = message.get("bytes") or b""
                response = await dispatcher.handle(payload, connection)
                await websocket.send_json(response)
        except WebSocketDisconnect:
            logger.debug("WebSocket client disconnected")
        finally:
            released = store.release_connection(connection)
            if released:
                logger.debug(f"Detached closed connection from {released} session(s)")

    @app.get("/healthz")
    async def healthz():
        """
        Minimal health check endpoint for readiness/liveness probes.
        """
        return {"status": "ok", "sessions": len(store), "expiry": store.sweeper.running}

    return app


app = create_app()


def main() -> None:
    api_config = EnvConfigProvider().get_api_config()
    configure_logging(api_config.log_level)

    uvicorn.run(
        "rpcsession.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
