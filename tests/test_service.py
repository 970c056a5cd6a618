"""
Wiegand Service Tests
=====================

End-to-end runs of the bridge loop over a MockEdgeSource.
"""

import threading

import pytest

from wiegand_bridge.config import Settings
from wiegand_bridge.decode.formats import W34
from wiegand_bridge.gpio import MockEdgeSource, edges_from_bits
from wiegand_bridge.models.edge import Edge, Line
from wiegand_bridge.service import WiegandService


def run_steps(service: WiegandService, count: int) -> list:
    published = []
    for _ in range(count):
        published.extend(service.step())
    return published


def stop_after(source: MockEdgeSource, calls: int, stop_event: threading.Event) -> None:
    """Set `stop_event` once `source` has been polled `calls` times."""
    original = source.wait_for_edges

    def wait_for_edges(max_wait):
        edges = original(max_wait)
        if source.calls >= calls:
            stop_event.set()
        return edges

    source.wait_for_edges = wait_for_edges


class TestStep:
    """Tests for single loop iterations."""

    def test_two_cards(self, settings, sink):
        source = MockEdgeSource.from_cards([(12, 3456), (12, 3457)])
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 8)

        assert [(f.facility, f.card) for f in published] == [(12, 3456), (12, 3457)]
        assert [f.sequence_counter for f in published] == [1, 2]
        assert sink.retained["/devices/wiegand/controls/CardNumber"] == "3457"
        assert sink.retained["/devices/wiegand/controls/ReadCounter"] == "2"
        assert service.metrics.frames_decoded == 2
        assert service.metrics.edges_received == 52

    def test_frame_closes_on_poll_without_further_edges(self, settings, sink):
        source = MockEdgeSource.from_cards([(1, 1)])
        service = WiegandService.from_settings(settings, source, sink)

        # edges arrive in the first iteration, the gap is seen in the second
        assert service.step() == []
        assert source.exhausted
        assert len(service.step()) == 1

    def test_w34(self, settings, sink):
        source = MockEdgeSource.from_cards([(1000, 4242)], layout=W34)
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 4)

        assert published[0].format.value == "w34"
        assert sink.retained["/devices/wiegand/controls/FacilityCode"] == "1000"

    def test_short_noise_does_not_consume_counter(self, settings, sink, card_26):
        source = MockEdgeSource.from_frames([card_26, (1, 0, 1), card_26])
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 10)

        assert [f.sequence_counter for f in published] == [1, 2]
        assert service.metrics.frames_discarded == 1
        assert service.metrics.frames_emitted == 2

    def test_decode_failures_are_published(self, settings, sink, card_26, corrupted_26):
        source = MockEdgeSource.from_frames([card_26, corrupted_26, (1,) * 25])
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 12)

        assert [f.error.value for f in published] == ["", "parity_fail", "len_mismatch"]
        assert service.metrics.decode_errors == {"parity_fail": 1, "len_mismatch": 1}
        assert sink.retained["/devices/wiegand/controls/LastError"] == "len_mismatch"
        assert sink.retained["/devices/wiegand/controls/ReadCounter"] == "3"
        assert sink.retained["/devices/wiegand/controls/CardNumber"] == "-1"

    def test_read_error_is_skipped(self, settings, sink):
        source = MockEdgeSource.from_cards([(12, 3456)])
        source.fail_next()
        service = WiegandService.from_settings(settings, source, sink)

        assert service.step() == []
        assert service.metrics.read_errors == 1

        published = run_steps(service, 3)
        assert published[0].card == 3456

    def test_contact_bounce_filtered(self, settings, sink, card_26):
        edges = edges_from_bits(card_26)
        edges.append(Edge(Line.D0, edges[3].timestamp_ns + 50_000))
        source = MockEdgeSource(edges)
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 3)

        assert published[0].card == 3456
        assert service.metrics.edges_received == 27
        assert service.metrics.edges_rejected == 1

    def test_swapped_lines(self, sink, card_26):
        settings = Settings.model_validate({"capture": {"swap_lines": True}})
        source = MockEdgeSource(edges_from_bits(card_26, swap_lines=True))
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 3)

        assert published[0].card == 3456

    def test_static_inversion(self, sink, card_26):
        settings = Settings.model_validate({"decode": {"invert_bits": True}})
        inverted = tuple(1 - b for b in card_26)
        source = MockEdgeSource.from_frames([inverted])
        service = WiegandService.from_settings(settings, source, sink)

        published = run_steps(service, 3)

        assert published[0].bits == "".join(map(str, card_26))

    def test_last_frame(self, settings, sink):
        source = MockEdgeSource.from_cards([(5, 6)])
        service = WiegandService.from_settings(settings, source, sink)
        assert service.last_frame is None

        run_steps(service, 3)

        assert service.last_frame.card == 6


class TestRun:
    """Tests for the blocking loop."""

    def test_runs_until_stopped(self, settings, sink):
        source = MockEdgeSource.from_cards([(12, 3456), (12, 3457)])
        service = WiegandService.from_settings(settings, source, sink)
        stop_event = threading.Event()
        stop_after(source, 10, stop_event)

        service.run(stop_event)

        assert not service.running
        assert service.started_at is not None
        assert service.metrics.iterations == 10
        assert service.metrics.frames_decoded == 2

    def test_preset_stop_event(self, settings, sink):
        source = MockEdgeSource.from_cards([(12, 3456)])
        service = WiegandService.from_settings(settings, source, sink)
        stop_event = threading.Event()
        stop_event.set()

        service.run(stop_event)

        assert service.metrics.iterations == 0
        assert source.calls == 0

    def test_unterminated_frame_not_flushed(self, settings, sink, card_26):
        source = MockEdgeSource.from_frames([card_26])
        service = WiegandService.from_settings(settings, source, sink)
        stop_event = threading.Event()
        stop_after(source, 1, stop_event)

        service.run(stop_event)

        assert service.accumulator.pending_bits == 26
        assert sink.publications == []

    def test_invalid_poll_interval(self, settings, sink):
        service = WiegandService.from_settings(settings, MockEdgeSource(), sink)
        with pytest.raises(ValueError):
            WiegandService(
                service.source,
                service.accumulator,
                service.decoder,
                service.publisher,
                poll_interval=0,
            )


class TestMetrics:
    def test_to_dict(self, settings, sink):
        source = MockEdgeSource.from_cards([(12, 3456)])
        service = WiegandService.from_settings(settings, source, sink)
        run_steps(service, 3)

        data = service.metrics.to_dict()
        assert data["frames_emitted"] == 1
        assert data["edges_received"] == 26
        assert data["iterations"] == 3
        assert data["decode_errors"] == {"parity_fail": 0, "len_mismatch": 0}
