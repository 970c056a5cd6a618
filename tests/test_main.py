"""
Entry Point Tests
=================
"""

import pytest

from wiegand_bridge import main as entry
from wiegand_bridge.errors import SinkUnavailableError
from wiegand_bridge.gpio import MockEdgeSource
from wiegand_bridge.publish import MemorySink
from wiegand_bridge.service import WiegandService


open_edge_source = entry.create_edge_source
open_sink = entry.create_sink


@pytest.fixture
def harness(tmp_path, monkeypatch):
    """Patch hardware, broker and signal handling; record what main() built."""
    monkeypatch.chdir(tmp_path)
    state = {
        "source": MockEdgeSource.from_cards([(12, 3456)]),
        "sink": MemorySink(),
        "settings": None,
        "dry_run": None,
    }

    def create_sink(settings, dry_run=False):
        state["settings"] = settings
        state["dry_run"] = dry_run
        return state["sink"]

    def create_edge_source(settings):
        return state["source"]

    def run(self, stop_event):
        for _ in range(3):
            self.step()

    monkeypatch.setattr(entry, "create_sink", create_sink)
    monkeypatch.setattr(entry, "create_edge_source", create_edge_source)
    monkeypatch.setattr(entry.signal, "signal", lambda signum, handler: None)
    monkeypatch.setattr(WiegandService, "run", run)
    return state


class TestParser:
    def test_overrides(self):
        args = entry.build_parser().parse_args([
            "--d0", "17", "--d1", "27", "--device", "door1",
            "--swap-lines", "--reverse-bits", "--skip-meta",
        ])
        assert entry.overrides_from_args(args) == {
            "gpio": {"d0": 17, "d1": 27},
            "device": {"device_id": "door1"},
            "capture": {"swap_lines": True},
            "decode": {"reverse_bits": True},
            "mqtt": {"skip_meta": True},
        }

    def test_no_flags_no_overrides(self):
        args = entry.build_parser().parse_args([])
        assert entry.overrides_from_args(args) == {}


class TestMain:
    def test_runs_and_publishes(self, harness):
        assert entry.main(["--device", "door1"]) == 0

        sink = harness["sink"]
        assert sink.retained["/devices/door1/meta/driver"] == "wb-mqtt-wiegand"
        assert sink.retained["/devices/door1/controls/CardNumber"] == "3456"
        assert sink.closed
        assert harness["source"].closed

    def test_skip_meta(self, harness):
        assert entry.main(["--skip-meta"]) == 0
        assert not any("/meta/" in t for t in harness["sink"].topics())

    def test_dry_run_flag(self, harness):
        entry.main(["--dry-run"])
        assert harness["dry_run"] is True

    def test_flags_reach_settings(self, harness):
        entry.main(["--d0", "17", "--d1", "27", "--invert-bits"])
        settings = harness["settings"]
        assert (settings.gpio.d0, settings.gpio.d1) == (17, 27)
        assert settings.decode.invert_bits is True

    def test_missing_config(self, harness, tmp_path):
        assert entry.main(["--config", str(tmp_path / "missing.yaml")]) == 1

    def test_invalid_config(self, harness):
        assert entry.main(["--d0", "4", "--d1", "4"]) == 1

    def test_gpio_unavailable(self, harness, monkeypatch):
        monkeypatch.setattr(entry, "_LGPIO_AVAILABLE", False)
        monkeypatch.setattr(entry, "create_edge_source", open_edge_source)
        assert entry.main([]) == 1
        assert harness["sink"].closed

    def test_broker_unavailable(self, harness, monkeypatch):
        def create_sink(settings, dry_run=False):
            raise SinkUnavailableError("Cannot connect to MQTT broker")

        monkeypatch.setattr(entry, "create_sink", create_sink)
        assert entry.main([]) == 1

    def test_malformed_env_value(self, harness, monkeypatch):
        monkeypatch.setenv("WIEGAND_D0", "abc")
        assert entry.main([]) == 1

    def test_malformed_yaml(self, harness, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("gpio: [d0: 1\n")
        assert entry.main(["--config", str(path)]) == 1


def test_dry_run_sink_does_not_record(settings):
    sink = open_sink(settings, dry_run=True)
    sink.publish("/devices/wiegand/controls/Len", "26")
    assert isinstance(sink, MemorySink)
    assert sink.publications == []
    assert sink.retained == {"/devices/wiegand/controls/Len": "26"}
