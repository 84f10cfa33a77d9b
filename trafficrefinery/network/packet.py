"""Packet metadata, interface statistics and capture handle interfaces."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Protocol

from trafficrefinery.network.layers import IPv4, IPv6, TCP, UDP, Ethernet


class Direction(enum.IntEnum):
    UNKNOWN = -1
    IN = 0
    OUT = 1


@dataclass
class Packet:
    """A captured packet and the flow metadata extracted from it."""

    raw_data: bytes = b""
    eth: Optional[Ethernet] = None
    ip4: Optional[IPv4] = None
    ip6: Optional[IPv6] = None
    tcp: Optional[TCP] = None
    udp: Optional[UDP] = None
    dns: Optional[object] = None
    tstamp: int = 0
    dir: int = Direction.IN
    hw_addr: str = ""
    is_ipv4: bool = False
    is_local: bool = False
    length: int = 0
    service_ip: str = ""
    my_ip: str = ""
    is_tcp: bool = False
    data_length: int = 0
    service_port: int = 0
    my_port: int = 0
    seq_number: int = 0
    is_dns: bool = False

    def clear(self) -> None:
        """Reset the extracted metadata, keeping the raw data and layers."""
        self.tstamp = 0
        self.dir = Direction.IN
        self.hw_addr = ""
        self.is_ipv4 = False
        self.is_local = False
        self.length = 0
        self.service_ip = ""
        self.my_ip = ""
        self.is_tcp = False
        self.data_length = 0
        self.service_port = 0
        self.my_port = 0
        self.seq_number = 0
        self.is_dns = False


@dataclass
class IfStats:
    pkt_recv: int = 0
    pkt_drop: int = 0


@dataclass
class HandleConfig:
    name: str = ""
    filter: str = ""
    snap_len: int = 0
    clustered: bool = False
    cluster_id: int = 0
    zero_copy: bool = False
    fan_out: bool = False


class Handle(Protocol):
    """A packet capture source."""

    def init(self, conf: HandleConfig) -> None: ...

    def read_packet_data(self) -> tuple[bytes, int]:
        """Return the next frame and its timestamp in ns; raise EOFError at the end."""
        ...

    def stats(self) -> IfStats: ...


class PacketProcessor(Protocol):
    """Receives packets from parsers."""

    def process_packet(self, pkt: Packet) -> None: ...