"""FastAPI backend for the Claisen kinetics sandbox.

Run with ``python -m claisen`` or ``uvicorn claisen.api:app``.
"""
from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .channels import ClientChannel
from .config import DEFAULT_CONFIG
from .controls import ControlLockedError
from .kinetics import SPECIES, SPECIES_COLORS, SPECIES_LABELS
from .logging_config import setup_logging
from .simulation import Simulation

logger = logging.getLogger(__name__)

# ============================================================================
# Pydantic Models
# ============================================================================

class RateUpdate(BaseModel):
    """New value for the forward rate input (unchecked)."""
    value: float


# ============================================================================
# FastAPI App with Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    setup_logging()
    logger.info("Server starting, k_fwd=%s", _simulation.controls.read_rate())

    yield

    logger.info("Server shutting down")
    _simulation.stop()

app = FastAPI(title="Claisen Kinetics Sandbox", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
_config = DEFAULT_CONFIG
_simulation = Simulation(_config)
_frontend_dir = Path(__file__).resolve().parent.parent / "frontend"
_clients: Set[ClientChannel] = set()

if _frontend_dir.exists():
    app.mount("/static", StaticFiles(directory=_frontend_dir), name="static")


# ============================================================================
# Broadcast
# ============================================================================

def _broadcast(message: Dict[str, Any]) -> None:
    """Hand a simulation message to every connected client."""
    for channel in _clients:
        channel.put(message)


_simulation.add_listener(_broadcast)


def _run_summary() -> Dict[str, Any]:
    return {
        "status": _simulation.state.value,
        "t": _simulation.t,
        "controls": _simulation.controls.as_dict(),
    }


# ============================================================================
# REST Endpoints
# ============================================================================

@app.get("/")
async def index() -> FileResponse:
    """Serve frontend."""
    if not _frontend_dir.exists():
        raise HTTPException(status_code=404, detail="Frontend not found")
    return FileResponse(_frontend_dir / "index.html")


@app.get("/health")
async def health() -> Dict[str, str]:
    """Health check."""
    return {"status": "ok"}


@app.get("/config")
async def get_config() -> Dict[str, Any]:
    """Get the fixed simulation constants."""
    return {
        "config": _simulation.config.as_dict(),
        "species": [
            {"key": key, "label": SPECIES_LABELS[key], "color": SPECIES_COLORS[key]}
            for key in SPECIES
        ],
    }


@app.get("/state")
async def get_state() -> Dict[str, Any]:
    """Current frame, run state and controls."""
    return _simulation.get_state()


@app.get("/chart")
async def get_chart() -> Dict[str, Any]:
    """Full recorded chart series."""
    return _simulation.chart.as_chart_data()


@app.post("/start")
async def start_simulation() -> Dict[str, Any]:
    """Start (or restart) a run."""
    _simulation.start()
    return _run_summary()


@app.post("/stop")
async def stop_simulation() -> Dict[str, Any]:
    """Stop the current run."""
    _simulation.stop()
    return _run_summary()


@app.post("/reset")
async def reset_simulation() -> Dict[str, Any]:
    """Reset simulation to initial state."""
    _simulation.reset()
    return _run_summary()


@app.post("/rate")
async def update_rate(rate_update: RateUpdate) -> Dict[str, Any]:
    """Set the live forward rate constant."""
    try:
        _simulation.controls.set_rate(rate_update.value)
    except ControlLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"controls": _simulation.controls.as_dict()}


# ============================================================================
# WebSocket
# ============================================================================

async def _listener(websocket: WebSocket, channel: ClientChannel) -> None:
    """Listen for client commands; a ``None`` on the channel ends the session."""
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            try:
                text = frame.get("text")
                if text is None:
                    raise ValueError("Expected a JSON text frame")
                _handle_message(json.loads(text))
            except (ValueError, ControlLockedError) as exc:
                channel.put({"type": "error", "detail": str(exc)})
    except WebSocketDisconnect:
        pass
    finally:
        channel.put(None)


def _handle_message(message: Any) -> None:
    """Handle client commands."""
    if not isinstance(message, dict):
        raise ValueError("Message must be a JSON object")

    msg_type = message.get("type")

    if msg_type == "start":
        _simulation.start()

    elif msg_type == "stop":
        _simulation.stop()

    elif msg_type == "reset":
        _simulation.reset()

    elif msg_type == "set_rate":
        value: Optional[Any] = message.get("value")
        if value is None:
            raise ValueError("Message missing 'value'")
        try:
            rate = float(value)
        except TypeError:
            raise ValueError(f"Invalid 'value' {value!r}")
        _simulation.controls.set_rate(rate)
        _broadcast(_simulation.state_message())

    else:
        raise ValueError(f"Unknown message type '{msg_type}'")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """WebSocket endpoint - clients subscribe to simulation updates."""
    await websocket.accept()

    channel = ClientChannel(_config.client_buffer)
    channel.put({"type": "chart", "payload": _simulation.chart.as_chart_data()})
    channel.put(_simulation.state_message())
    _clients.add(channel)
    logger.info("Client connected, total clients: %d", len(_clients))

    listener = asyncio.create_task(_listener(websocket, channel))

    try:
        while True:
            message = await channel.get()
            if message is None:
                break
            if message["type"] == "state" and channel.chart_stale:
                logger.debug("Client fell behind, resending chart (%d dropped)", channel.dropped)
                await websocket.send_json({"type": "chart", "payload": _simulation.chart.as_chart_data()})
                message = channel.resync(message)
            await websocket.send_json(message)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Unexpected WebSocket error")
    finally:
        _clients.discard(channel)
        listener.cancel()
        logger.info("Client disconnected, remaining clients: %d", len(_clients))
