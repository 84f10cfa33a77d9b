import json
import os
import re
import threading
import time

from trafficrefinery.stats.printer import OutJson, Printer, StatsCollector

PAYLOAD = b'{"n":1}'


class FakeStats:
    def __init__(self):
        self.inited = False
        self.runs = 0

    def type(self):
        return "Fake"

    def init(self):
        self.inited = True

    def run(self):
        self.runs += 1
        return PAYLOAD


def _wait_for(cond, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if cond():
            return True
        time.sleep(0.01)
    return False


def _start(printer):
    thread = threading.Thread(target=printer.run, daemon=True)
    thread.start()
    return thread


def test_out_json_round_trip():
    out = OutJson("3.0", "--", "Fake", 10, 20, PAYLOAD)
    parsed = json.loads(out.to_json())
    assert parsed == {"Version": "3.0", "Conf": "--", "Type": "Fake",
                      "TsStart": 10, "TsEnd": 20, "Data": {"n": 1}}


def test_out_json_null_data():
    parsed = json.loads(OutJson("3.0", "--", "Fake", 1, 2).to_json())
    assert parsed["Data"] is None


def test_non_append_mode_writes_single_file(tmp_path):
    printer = Printer(False, 0.05, tmp_path, "flows")
    stats = FakeStats()
    printer.add_collector(StatsCollector(0.02, stats))
    thread = _start(printer)
    target = tmp_path / "flows.out"
    assert _wait_for(target.exists)
    printer.stop()
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert stats.inited
    assert target.read_bytes() == PAYLOAD


def test_append_mode_rotates_and_finalises(tmp_path):
    printer = Printer(True, 0.05, tmp_path, "flows")
    stats = FakeStats()
    printer.add_collector(StatsCollector(0.01, stats))
    thread = _start(printer)
    assert _wait_for(lambda: stats.runs >= 4)
    printer.stop()
    thread.join(timeout=5)
    assert not thread.is_alive()
    names = os.listdir(tmp_path)
    assert not [n for n in names if n.startswith("tmp.")]
    outs = [n for n in names if re.fullmatch(r"flows\.\d+\.out", n)]
    assert outs
    lines = [line for n in outs for line in (tmp_path / n).read_bytes().splitlines()]
    assert lines
    assert all(line == PAYLOAD for line in lines)


def test_add_collector_keeps_order():
    printer = Printer(False, 1, ".", "x")
    first, second = StatsCollector(1, FakeStats()), StatsCollector(2, FakeStats())
    printer.add_collector(first)
    printer.add_collector(second)
    assert printer.collectors == [first, second]