"""
Status Endpoint
===============

Optional read-only HTTP view of a running WiegandService.

Endpoints:
    GET  /           - Service information
    GET  /health     - Liveness probe (is the loop running?)
    GET  /metrics    - Bridge metrics
    GET  /last-frame - Most recently published frame

The app only reads values the loop thread replaces atomically (metrics
counters and the frozen last DecodedFrame); it never touches capture state.
"""

import logging
import threading
import time

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from wiegand_bridge import __version__
from wiegand_bridge.service import WiegandService


logger = logging.getLogger(__name__)


def create_status_app(service: WiegandService) -> FastAPI:
    """
    Build the status app for `service`.

    Args:
        service: Service whose state is exposed

    Returns:
        FastAPI application.
    """
    app = FastAPI(
        title="Wiegand Bridge",
        description="Wiegand to MQTT bridge status",
        version=__version__,
    )

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        return JSONResponse({
            "service": "wiegand-bridge",
            "version": __version__,
            "device_id": service.publisher.device_id,
            "status": "running" if service.running else "stopped",
        })

    @app.get("/health")
    async def health() -> JSONResponse:
        """
        Liveness probe.

        Returns 200 while the bridge loop runs, 503 otherwise.
        """
        uptime = round(time.time() - service.started_at, 1) if service.started_at else 0.0
        if service.running:
            return JSONResponse({"status": "healthy", "uptime_seconds": uptime})
        return JSONResponse({"status": "stopped", "uptime_seconds": uptime}, status_code=503)

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Bridge metrics."""
        data = service.metrics.to_dict()
        data["sequence_counter"] = service.accumulator.sequence_counter
        return JSONResponse(data)

    @app.get("/last-frame")
    async def last_frame() -> JSONResponse:
        """Most recently published frame."""
        frame = service.last_frame
        if frame is None:
            return JSONResponse({"error": "No frame read yet"}, status_code=503)
        return JSONResponse(frame.model_dump(mode="json"))

    return app


def start_status_server(
    service: WiegandService,
    host: str = "0.0.0.0",
    port: int = 8002,
) -> threading.Thread:
    """
    Serve the status app from a daemon thread.

    Args:
        service: Service to expose
        host: Bind host
        port: Bind port

    Returns:
        The server thread (already started).
    """
    config = uvicorn.Config(
        create_status_app(service),
        host=host,
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="status_server", daemon=True)
    thread.start()
    logger.info(f"Status server listening on {host}:{port}")
    return thread
