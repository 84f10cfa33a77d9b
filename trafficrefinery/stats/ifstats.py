"""Reports of packets received and dropped by capture interfaces."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Sequence

from trafficrefinery.network.interface import NetworkInterface
from trafficrefinery.stats.printer import OutJson


@dataclass
class ParserStats:
    name: str = ""
    pkt_recv: int = 0
    pkt_drop: int = 0

    def to_dict(self) -> dict:
        return {"Name": self.name, "PktRecv": self.pkt_recv, "PktDrop": self.pkt_drop}


class IfStatsPrinter:
    """Collects the capture statistics of a set of interfaces."""

    def __init__(self, interfaces: Sequence[NetworkInterface]) -> None:
        self.interfaces = list(interfaces)
        self._last_time = 0

    def type(self) -> str:
        return "IfStatsPrinter"

    def init(self) -> None:
        self._last_time = int(time.time())

    def run(self) -> bytes:
        """Return a JSON report covering the time since the previous run."""
        end_time = int(time.time())
        parsers = []
        for iface in self.interfaces:
            s = iface.handle.stats()
            parsers.append(ParserStats(pkt_recv=s.pkt_recv, pkt_drop=s.pkt_drop))
        data = json.dumps([p.to_dict() for p in parsers], separators=(",", ":"))
        out = OutJson(
            version="3.0",
            conf="--",
            type=self.type(),
            ts_start=self._last_time,
            ts_end=end_time,
            data=data,
        )
        self._last_time = end_time
        return out.to_json()