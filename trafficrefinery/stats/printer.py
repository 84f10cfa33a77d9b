"""Periodic collection of statistics into output files."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import IO, Optional, Protocol, Union

log = logging.getLogger(__name__)

Duration = Union[int, float, timedelta]


def _seconds(value: Duration) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class Stats(Protocol):
    """A source of statistics, run periodically."""

    def type(self) -> str: ...

    def init(self) -> None: ...

    def run(self) -> bytes: ...


@dataclass
class OutJson:
    """Envelope of one statistics report."""

    version: str
    conf: str
    type: str
    ts_start: int
    ts_end: int
    data: Optional[Union[bytes, str]] = None

    def to_json(self) -> bytes:
        """Return the report as compact JSON, embedding ``data`` as raw JSON."""
        out = {
            "Version": self.version,
            "Conf": self.conf,
            "Type": self.type,
            "TsStart": self.ts_start,
            "TsEnd": self.ts_end,
            "Data": None if self.data is None else json.loads(self.data),
        }
        return json.dumps(out, separators=(",", ":")).encode()


@dataclass
class StatsCollector:
    """A statistics source and the period at which it runs."""

    period: Duration
    collector: Stats
    _end: threading.Event = field(default_factory=threading.Event, init=False, repr=False)


class Printer:
    """Runs collectors and writes their output under ``out_dir``.

    In append mode every report is appended to a temporary file that is moved
    to ``<base>.<time>.out`` every ``period``; otherwise each report replaces
    ``<base>.out``.
    """

    def __init__(self, app: bool, period: Duration, out_dir, base_name: str) -> None:
        self.app = bool(app)
        self.period = _seconds(period)
        self.out_dir = os.fspath(out_dir)
        self.base_name = base_name
        self.collectors: list[StatsCollector] = []
        self._end = threading.Event()
        self._lock = threading.Lock()
        self._file: Optional[IO[bytes]] = None
        self._w_time = 0
        self._threads: list[threading.Thread] = []

    def add_collector(self, collector: StatsCollector) -> None:
        self.collectors.append(collector)

    def _open_temp(self) -> IO[bytes]:
        fd, _ = tempfile.mkstemp(prefix=f"tmp.{self.base_name}.", dir=self.out_dir)
        return os.fdopen(fd, "wb")

    def _rotate(self) -> None:
        """Move the current temporary file to its final name. Lock must be held."""
        if self._file is None:
            return
        self._file.close()
        final = os.path.join(self.out_dir, f"{self.base_name}.{self._w_time}.out")
        os.replace(self._file.name, final)
        self._file = None

    def _write_single(self, data: bytes) -> None:
        path = os.path.join(self.out_dir, f"{self.base_name}.out")
        fd, tmp = tempfile.mkstemp(prefix=f".{self.base_name}.", dir=self.out_dir)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)

    def _run_collector(self, sc: StatsCollector) -> None:
        sc.collector.init()
        period = _seconds(sc.period)
        while not sc._end.wait(period):
            data = sc.collector.run()
            if isinstance(data, str):
                data = data.encode()
            if self.app:
                with self._lock:
                    if self._file is not None:
                        self._file.write(data + b"\n")
                        self._file.flush()
            else:
                try:
                    self._write_single(data)
                except OSError as exc:
                    log.error("Could not write stats: %s", exc)

    def run(self) -> None:
        """Start the collectors and rotate output until ``stop`` is called."""
        if self.app:
            with self._lock:
                self._file = self._open_temp()
        self._w_time = int(time.time())
        for sc in self.collectors:
            sc._end.clear()
            thread = threading.Thread(target=self._run_collector, args=(sc,), daemon=True)
            self._threads.append(thread)
            thread.start()
        while not self._end.wait(self.period):
            log.info("Printing out flow stats to file")
            if not self.app:
                continue
            with self._lock:
                if self._end.is_set() or self._file is None:
                    break
                c_time = int(time.time())
                log.debug("Wrapping up out file")
                self._rotate()
                self._w_time = c_time
                self._file = self._open_temp()

    def stop(self) -> None:
        """Stop the collectors and, in append mode, finalise the current file."""
        self._end.set()
        for sc in self.collectors:
            sc._end.set()
        for thread in self._threads:
            thread.join()
        self._threads.clear()
        if self.app:
            with self._lock:
                self._rotate()