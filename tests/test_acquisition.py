"""
Acquisition Loop Tests
======================

End-to-end cycle over scripted and simulated transports.
"""

import numpy as np
import pytest

from spectrum_viewer.errors import FramingError, ParseError, SizeError, TransportError
from spectrum_viewer.models.state import AcquisitionState
from spectrum_viewer.stream.acquisition import AcquisitionLoop
from spectrum_viewer.stream.handoff import SpectrumSlot
from spectrum_viewer.stream.simulated import SimulatedDevice

from conftest import ScriptedTransport, frame_bytes, tone_samples


SMALL_FFT = 64


def make_loop(transport, fft_size: int = SMALL_FFT) -> AcquisitionLoop:
    return AcquisitionLoop(
        transport=transport,
        slot=SpectrumSlot(),
        fft_size=fft_size,
        read_timeout_seconds=5.0,
    )


class TestCycle:
    """Tests for the read/parse/transform/publish cycle."""

    def test_initialization_sequence(self):
        transport = ScriptedTransport()
        loop = make_loop(transport)

        loop.run()

        assert transport.timeout == 5.0
        assert transport.events[:3] == [
            ("reset_input",),
            ("reset_output",),
            ("write", b"p"),
        ]

    def test_publishes_each_frame(self):
        frames = [frame_bytes(tone_samples(4, 500, SMALL_FFT)) for _ in range(3)]
        transport = ScriptedTransport(frames)
        loop = make_loop(transport)

        loop.run()

        assert loop.slot.sequence == 3
        assert loop.metrics.frames_received == 3
        assert loop.metrics.spectra_published == 3
        spectrum = loop.slot.latest()
        assert spectrum.frame_id == 2
        assert spectrum.bins.shape == (SMALL_FFT // 2 + 1,)
        assert spectrum.peak()[0] == 4

    def test_one_trigger_per_frame_plus_initial(self):
        frames = [frame_bytes(np.full(SMALL_FFT, 2048)) for _ in range(2)]
        transport = ScriptedTransport(frames)

        make_loop(transport).run()

        assert transport.writes == [b"p", b"p", b"p"]

    def test_next_trigger_issued_before_parsing(self):
        transport = ScriptedTransport([frame_bytes(np.full(SMALL_FFT, 2048))])
        loop = make_loop(transport)
        parse = loop.parser.parse

        def recording_parse(payload):
            transport.events.append(("parse",))
            return parse(payload)

        loop.parser.parse = recording_parse
        loop.run()

        kinds = [event[0] for event in transport.events]
        parse_at = kinds.index("parse")
        writes_before_parse = [k for k in kinds[:parse_at] if k == "write"]
        assert len(writes_before_parse) == 2


class TestFailures:
    """Every acquisition error ends the loop."""

    def test_exhausted_stream_is_framing_failure(self):
        loop = make_loop(ScriptedTransport([frame_bytes(np.full(SMALL_FFT, 1))]))

        loop.run()

        assert loop.state == AcquisitionState.FAILED
        assert isinstance(loop.error, FramingError)
        assert loop.slot.sequence == 1

    def test_malformed_frame_keeps_last_spectrum(self):
        good = frame_bytes(tone_samples(3, 200, SMALL_FFT))
        bad = b"12\nnope\n\xff"
        loop = make_loop(ScriptedTransport([good, bad, good]))

        loop.run()

        assert isinstance(loop.error, ParseError)
        assert loop.error.line == "nope"
        assert loop.slot.sequence == 1
        assert loop.slot.latest().frame_id == 0
        assert loop.metrics.frames_received == 2

    def test_short_frame_is_size_failure(self):
        loop = make_loop(ScriptedTransport([frame_bytes(range(SMALL_FFT - 1))]))

        loop.run()

        assert isinstance(loop.error, SizeError)
        assert loop.slot.sequence == 0

    def test_empty_frame_is_size_failure(self):
        loop = make_loop(ScriptedTransport([b"\xff"]))

        loop.run()

        assert isinstance(loop.error, SizeError)
        assert loop.error.actual == 0

    def test_transport_failure(self):
        loop = make_loop(ScriptedTransport(read_error=OSError("unplugged")))

        loop.run()

        assert isinstance(loop.error, TransportError)
        status = loop.status()
        assert status.state == AcquisitionState.FAILED
        assert status.error_type == "TransportError"
        assert status.running is False

    def test_unexpected_error_propagates(self):
        loop = make_loop(ScriptedTransport([frame_bytes(np.full(SMALL_FFT, 1))]))

        def explode(samples):
            raise RuntimeError("boom")

        loop.transform.transform = explode

        with pytest.raises(RuntimeError):
            loop.run()
        assert loop.state == AcquisitionState.FAILED


class TestThreaded:
    """Tests for the dedicated acquisition thread."""

    def test_runs_until_stopped(self):
        device = SimulatedDevice(samples_per_frame=256, tone_hz=3000.0, realtime=False)
        loop = make_loop(device, fft_size=256)

        loop.start()
        assert loop.slot.wait(after_sequence=2, timeout=10.0) is not None
        assert loop.running

        loop.stop()

        assert loop.join(timeout=10.0)
        assert loop.state == AcquisitionState.STOPPED
        assert loop.error is None
        # 3000 Hz at 96 kHz / 256 samples lands on bin 8
        assert loop.slot.latest().peak()[0] == 8

    def test_stop_cancels_blocked_read(self):
        device = SimulatedDevice(samples_per_frame=256, realtime=False)
        loop = make_loop(device, fft_size=256)
        # Swallow triggers so the loop blocks in the frame read
        device.trigger = b"x"

        loop.start()
        loop.stop()

        assert loop.join(timeout=10.0)
        assert loop.state == AcquisitionState.STOPPED

    def test_start_twice(self):
        loop = make_loop(ScriptedTransport())
        loop.start()
        loop.join(timeout=5.0)

        with pytest.raises(RuntimeError):
            loop.start()

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            AcquisitionLoop(ScriptedTransport(), SpectrumSlot(), sample_rate_hz=0)
