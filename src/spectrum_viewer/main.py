"""
Spectrum Viewer Main Application
================================

FastAPI entry point for the serial spectrum viewer.

The acquisition loop runs on its own thread and publishes into a
SpectrumSlot. Request handlers act as the spectrum consumer: they drain
the slot without blocking and serve the latest display spectrum. When
acquisition fails the last known spectrum keeps being served and the
failure is reported by /ready and /metrics.

Endpoints:
    GET  /            - Service information
    GET  /health      - Liveness probe (is process alive?)
    GET  /ready       - Readiness probe (spectrum available + acquisition alive?)
    GET  /metrics     - Acquisition and handoff metrics
    GET  /spectrum    - Latest display spectrum (dBFS)
    WS   /ws/spectrum - Periodic push of the latest display spectrum
"""

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from spectrum_viewer.config import settings
from spectrum_viewer.models.state import AcquisitionState
from spectrum_viewer.observability import SpectrumView
from spectrum_viewer.stream import AcquisitionLoop, SpectrumSlot, create_transport
from spectrum_viewer.stream.transport import SerialTransport


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

# Set once the lifespan exits (uvicorn handles SIGINT/SIGTERM)
_shutdown_flag: bool = False

_transport: Optional[SerialTransport] = None
_slot: Optional[SpectrumSlot] = None
_acquisition: Optional[AcquisitionLoop] = None
_view: Optional[SpectrumView] = None
_startup_time: float = 0.0


# =============================================================================
# Getters
# =============================================================================

def get_slot() -> Optional[SpectrumSlot]:
    return _slot

def get_acquisition() -> Optional[AcquisitionLoop]:
    return _acquisition

def get_view() -> Optional[SpectrumView]:
    return _view


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _transport, _slot, _acquisition, _view, _startup_time, _shutdown_flag

    _startup_time = time.time()
    _shutdown_flag = False
    logger.info(f"Starting {settings.app.name} {settings.app.version}")
    logger.info(
        f"Device backend: {settings.device.backend}, "
        f"port={settings.device.port}, baud={settings.device.baudrate}"
    )

    # Fails fast if the port cannot be opened
    _transport = create_transport(settings)

    _slot = SpectrumSlot()
    _acquisition = AcquisitionLoop(
        transport=_transport,
        slot=_slot,
        fft_size=settings.spectrum.fft_size,
        sample_rate_hz=settings.spectrum.sample_rate_hz,
        trigger=settings.device.trigger.encode("ascii"),
        delimiter=settings.device.delimiter,
        read_timeout_seconds=settings.device.read_timeout_seconds,
    )
    _view = SpectrumView(
        _slot,
        full_scale_amplitude=settings.spectrum.full_scale_amplitude,
        min_dbfs=settings.display.min_dbfs,
        max_dbfs=settings.display.max_dbfs,
    )

    _acquisition.start()
    logger.info("Acquisition thread started")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    _acquisition.stop()
    exited = await asyncio.to_thread(_acquisition.join, 5.0)
    if not exited:
        logger.warning("Acquisition thread did not exit within 5s")

    try:
        _transport.close()
    except Exception as e:
        logger.warning(f"Error closing transport: {e}")

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Serial Spectrum Viewer",
    description="Live FFT spectrum of a serial-attached ADC",
    version=settings.app.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": settings.app.name,
        "version": settings.app.version,
        "status": "running",
        "device_backend": settings.device.backend,
        "sample_rate_hz": settings.spectrum.sample_rate_hz,
        "fft_size": settings.spectrum.fft_size,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe - is the process alive?

    Always returns 200 if the service is running, even when
    acquisition has stopped.
    """
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe - is a live spectrum being served?

    Returns 200 once a spectrum has been published and acquisition is
    still running. Returns 503 before the first spectrum or after a
    fatal acquisition error.
    """
    acquisition = get_acquisition()
    slot = get_slot()

    if acquisition is None or slot is None:
        return JSONResponse({"status": "not_ready"}, status_code=503)

    status = acquisition.status()
    has_spectrum = slot.sequence > 0
    failed = status.state == AcquisitionState.FAILED

    body = {
        "status": "ready" if has_spectrum and not failed else "not_ready",
        "has_spectrum": has_spectrum,
        **status.model_dump(mode="json"),
    }
    if has_spectrum and not failed:
        return JSONResponse(body)
    return JSONResponse(body, status_code=503)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    acquisition = get_acquisition()
    slot = get_slot()
    view = get_view()

    acquisition_metrics = {}
    if acquisition:
        status = acquisition.status()
        acquisition_metrics = {
            "acquisition_state": status.state.value,
            "acquisition_error": status.error,
            "acquisition_error_type": status.error_type,
            **acquisition.metrics.to_dict(),
        }

    slot_metrics = {}
    if slot:
        slot_metrics = {
            f"slot_{key}": value for key, value in slot.metrics().items()
        }

    view_metrics = {}
    if view:
        view_metrics = {
            "view_refreshes": view.refresh_count,
            "view_updates": view.updates,
        }

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "device_backend": settings.device.backend,
        **acquisition_metrics,
        **slot_metrics,
        **view_metrics,
    })


@app.get("/spectrum")
async def spectrum() -> JSONResponse:
    """Get the latest display spectrum."""
    view = get_view()
    if view is None:
        return JSONResponse({"error": "Service not initialized"}, status_code=503)

    view.refresh()
    current_output = view.output()
    if current_output is None:
        return JSONResponse(
            {"error": "No spectrum available yet"},
            status_code=503,
        )

    return JSONResponse(current_output.model_dump(mode="json"))


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/spectrum")
async def spectrum_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint pushing each new display spectrum."""
    await websocket.accept()
    logger.info("Client connected to /ws/spectrum")

    last_frame_id = -1
    try:
        while not _shutdown_flag:
            view = get_view()
            if view is not None:
                view.refresh()
                current_output = view.output()
                if current_output and current_output.frame_id != last_frame_id:
                    await websocket.send_json(current_output.model_dump(mode="json"))
                    last_frame_id = current_output.frame_id
            await asyncio.sleep(settings.display.push_interval_seconds)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/spectrum")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "spectrum_viewer.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )
