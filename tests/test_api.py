"""
Service Tests
=============

FastAPI endpoints running against the simulated device.
"""

import time

import pytest
from fastapi.testclient import TestClient

from spectrum_viewer import main
from spectrum_viewer.config import settings


@pytest.fixture
def client(monkeypatch):
    """TestClient with a fast simulated device (1500 Hz tone, 1024-point FFT)."""
    monkeypatch.setattr(settings.device, "backend", "simulated")
    monkeypatch.setattr(settings.device, "read_timeout_seconds", 5.0)
    monkeypatch.setattr(settings.spectrum, "fft_size", 1024)
    monkeypatch.setattr(settings.simulation, "tone_hz", 1500.0)
    monkeypatch.setattr(settings.simulation, "noise", 0.0)
    monkeypatch.setattr(settings.simulation, "realtime", True)

    with TestClient(main.app) as test_client:
        yield test_client


def wait_for_spectrum(client, timeout: float = 10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        response = client.get("/spectrum")
        if response.status_code == 200:
            return response
        time.sleep(0.02)
    pytest.fail("No spectrum published in time")


class TestEndpoints:
    """Tests for HTTP endpoints."""

    def test_root(self, client):
        body = client.get("/").json()

        assert body["device_backend"] == "simulated"
        assert body["fft_size"] == 1024

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_spectrum(self, client):
        body = wait_for_spectrum(client).json()

        assert body["fft_size"] == 1024
        assert len(body["dbfs"]) == 513
        assert len(body["frequencies_hz"]) == 513
        assert body["bin_width_hz"] == pytest.approx(93.75)
        assert body["peak_frequency_hz"] == pytest.approx(1500.0)

    def test_ready_after_first_spectrum(self, client):
        wait_for_spectrum(client)

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["has_spectrum"] is True

    def test_metrics(self, client):
        wait_for_spectrum(client)

        body = client.get("/metrics").json()

        assert body["frames_received"] >= 1
        assert body["slot_sequence"] >= 1
        assert body["slot_published_count"] == body["slot_sequence"]
        assert "slot_superseded_count" in body
        assert body["acquisition_error"] is None

    def test_ready_reports_failure(self, client):
        wait_for_spectrum(client)
        acquisition = main.get_acquisition()

        # Pull the device out from under the running loop
        main._transport.close()
        assert acquisition.join(timeout=10.0)

        response = client.get("/ready")

        assert response.status_code == 503
        assert response.json()["state"] == "FAILED"
        assert response.json()["error_type"] == "TransportError"
        # Last known spectrum is still served
        assert client.get("/spectrum").status_code == 200


class TestWebSocket:
    """Tests for the spectrum push endpoint."""

    def test_pushes_spectrum(self, client):
        with client.websocket_connect("/ws/spectrum") as websocket:
            body = websocket.receive_json()

        assert len(body["dbfs"]) == 513
        assert body["frame_id"] >= 0
