"""Flows and the counters that collect their statistics."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union

from trafficrefinery.network.packet import Packet

log = logging.getLogger(__name__)


class Counter(Protocol):
    """A statistic collected over the packets of a flow."""

    def type(self) -> str: ...

    def add_packet(self, pkt: Packet) -> None: ...

    def reset(self) -> None: ...

    def clear(self) -> None: ...

    def collect(self) -> Union[bytes, str]:
        """Return the counter's state as a JSON document."""
        ...


@dataclass
class FlowService:
    """A service name and the names of the counters to collect for it."""

    name: str
    collect: list[str] = field(default_factory=list)


@dataclass
class Flow:
    """A flow's identity together with the counters it feeds."""

    id: str = ""
    service: str = ""
    domain_name: str = ""
    service_ip: str = ""
    local_ip: str = ""
    protocol: str = ""
    local_port: str = ""
    service_port: str = ""
    cntrs: list[Counter] = field(default_factory=list)

    def add_packet(self, pkt: Optional[Packet]) -> None:
        """Update every counter with ``pkt``; raise ValueError when it is None."""
        if pkt is None:
            raise ValueError("packet can not be nil")
        for counter in self.cntrs:
            log.debug("Updating counter of type %s for flow %s", counter.type(), self.id)
            counter.add_packet(pkt)
        log.debug("Updated flow %s with Service %s", self.domain_name, self.service)

    def reset(self) -> None:
        """Reset the statistics of every counter."""
        for counter in self.cntrs:
            counter.reset()

    def clear(self) -> None:
        """Clear the statistics of every counter."""
        for counter in self.cntrs:
            counter.clear()

    def collect(self) -> bytes:
        """Return the flow and its counters as compact JSON."""
        cntrs = [
            {"CType": c.type(), "Data": json.loads(c.collect())}
            for c in self.cntrs
        ]
        out = {
            "Id": self.id,
            "Service": self.service,
            "DomainName": self.domain_name,
            "ServiceIP": self.service_ip,
            "LocalIP": self.local_ip,
            "Protocol": self.protocol,
            "LocalPort": self.local_port,
            "ServicePort": self.service_port,
            "Cntrs": cntrs or None,
        }
        return json.dumps(out, separators=(",", ":")).encode()