"""Reading packet traces from pcap files and generating random ones for testing."""

from __future__ import annotations

import hashlib
import ipaddress
import random
import struct
import time
from dataclasses import dataclass, field
from typing import Iterator

from trafficrefinery.netutils import is_rfc1918
from trafficrefinery.network.dnsparser import _dns_payload, decode_dns
from trafficrefinery.network.layers import DecodeError, decode_layers
from trafficrefinery.network.packet import Direction, Packet
from trafficrefinery.servicemap.dnsmap import DNSMessage
from trafficrefinery.servicemap.servicemap import ServiceMap

LINKTYPE_ETHERNET = 1

_MAGIC_USEC = 0xA1B2C3D4
_MAGIC_NSEC = 0xA1B23C4D
_GLOBAL_HEADER = 24
_RECORD_HEADER = 16


@dataclass
class PcapRecord:
    """One captured frame: timestamp in ns, bytes and link type."""

    timestamp: int
    data: bytes
    link_type: int = LINKTYPE_ETHERNET


@dataclass
class PacketData:
    """A packet with the flow and service it belongs to."""

    flow_id: str = ""
    service: str = ""
    pkt: Packet = field(default_factory=Packet)


@dataclass
class PacketTrace:
    """Packets in capture order."""

    trace: list[PacketData] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.trace)

    def __iter__(self) -> Iterator[PacketData]:
        return iter(self.trace)

    def __len__(self) -> int:
        return len(self.trace)


@dataclass
class DNSPacketData:
    data: DNSMessage
    pkt_ts: int


@dataclass
class DNSTrace:
    """DNS responses in capture order."""

    trace: list[DNSPacketData] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.trace)

    def __iter__(self) -> Iterator[DNSPacketData]:
        return iter(self.trace)

    def __len__(self) -> int:
        return len(self.trace)


def flow_id(service_ip: str, my_ip: str, service_port: int, my_port: int) -> str:
    """Return the identifier of the flow with the given endpoints."""
    key = f"{service_ip}-{my_ip}-{service_port}-{my_port}"
    return hashlib.md5(key.encode()).hexdigest()


def read_pcap(path) -> Iterator[PcapRecord]:
    """Yield the frames of a classic pcap file.

    Raises ValueError when the file is not a pcap file. A truncated last
    record ends the iteration.
    """
    with open(path, "rb") as f:
        header = f.read(_GLOBAL_HEADER)
        if len(header) < _GLOBAL_HEADER:
            raise ValueError("file too short for a pcap header")
        for endian in ("<", ">"):
            magic = struct.unpack_from(endian + "I", header)[0]
            if magic in (_MAGIC_USEC, _MAGIC_NSEC):
                break
        else:
            raise ValueError("not a pcap file")
        frac_scale = 1 if magic == _MAGIC_NSEC else 1000
        link_type = struct.unpack_from(endian + "I", header, 20)[0] & 0x0FFFFFFF
        while True:
            rec = f.read(_RECORD_HEADER)
            if len(rec) < _RECORD_HEADER:
                return
            ts_sec, ts_frac, incl_len, _ = struct.unpack(endian + "IIII", rec)
            data = f.read(incl_len)
            if len(data) < incl_len:
                return
            yield PcapRecord(ts_sec * 1_000_000_000 + ts_frac * frac_scale, data, link_type)


def _populate_packet(pkt: Packet, record: PcapRecord) -> None:
    """Fill ``pkt`` from a frame; raise DecodeError at the first missing layer."""
    pkt.tstamp = record.timestamp
    pkt.raw_data = record.data
    layers = decode_layers(record.data)
    ip = layers.ip4
    if ip is None:
        raise DecodeError("not an IP pkt")
    pkt.ip4 = ip
    pkt.is_ipv4 = True
    pkt.length = ip.length - 4 * ip.ihl
    if is_rfc1918(ip.dst_ip):
        pkt.my_ip, pkt.service_ip, pkt.dir = str(ip.dst_ip), str(ip.src_ip), Direction.IN
    else:
        pkt.my_ip, pkt.service_ip, pkt.dir = str(ip.src_ip), str(ip.dst_ip), Direction.OUT
    eth = layers.eth
    pkt.eth = eth
    pkt.hw_addr = eth.dst_mac if pkt.dir == Direction.IN else eth.src_mac
    tcp = layers.tcp
    if tcp is None:
        raise DecodeError("not a TCP pkt")
    pkt.tcp = tcp
    pkt.is_tcp = True
    if pkt.dir == Direction.OUT:
        pkt.service_port, pkt.my_port = tcp.dst_port, tcp.src_port
    else:
        pkt.service_port, pkt.my_port = tcp.src_port, tcp.dst_port
    pkt.seq_number = tcp.seq
    pkt.data_length = pkt.length - 4 * tcp.data_offset


def _records(pcapfile) -> Iterator[PcapRecord]:
    for record in read_pcap(pcapfile):
        if record.link_type != LINKTYPE_ETHERNET:
            raise ValueError(f"unsupported link type {record.link_type}")
        yield record


def _packet_data(record: PcapRecord) -> PacketData:
    pkt_data = PacketData()
    try:
        _populate_packet(pkt_data.pkt, record)
    except DecodeError:
        pass
    p = pkt_data.pkt
    pkt_data.flow_id = flow_id(p.service_ip, p.my_ip, p.service_port, p.my_port)
    return pkt_data


def get_trace(pcapfile) -> PacketTrace:
    """Preparse the packets of a pcap file, with service "Unknown"."""
    trace = PacketTrace()
    for record in _records(pcapfile):
        pkt_data = _packet_data(record)
        pkt_data.service = "Unknown"
        trace.trace.append(pkt_data)
    return trace


def get_trace_with_services(pcapfile, sm: ServiceMap) -> PacketTrace:
    """Preparse the packets of a pcap file, naming the service of each."""
    trace = PacketTrace()
    for record in _records(pcapfile):
        pkt_data = _packet_data(record)
        services = sm.lookup_ip(pkt_data.pkt.service_ip)
        if services:
            pkt_data.service = sm.get_name(services[0]) or ""
        else:
            pkt_data.service = "Unknown"
        trace.trace.append(pkt_data)
    return trace


def get_dns_trace(pcapfile) -> DNSTrace:
    """Preparse the DNS responses carrying answers in a pcap file."""
    trace = DNSTrace()
    for record in _records(pcapfile):
        payload = _dns_payload(record.data, decode_layers(record.data))
        if payload is None:
            continue
        try:
            message = decode_dns(payload)
        except DecodeError:
            continue
        if not message.answers:
            continue
        trace.trace.append(DNSPacketData(data=message, pkt_ts=record.timestamp))
    return trace


def get_random_mac() -> str:
    """Return a random locally administered MAC address."""
    raw = bytearray(random.randbytes(6))
    raw[0] |= 2
    return ":".join(f"{b:02x}" for b in raw)


def get_random_ip() -> str:
    """Return a random IPv4 address."""
    return str(ipaddress.IPv4Address(random.randbytes(4)))


def get_random_port() -> int:
    return random.randrange(65536)


def get_random_packet(length: int) -> PacketData:
    """Return a random TCP/IPv4 packet of ``length`` bytes."""
    pkt = Packet(
        tstamp=time.time_ns(),
        dir=Direction(random.randrange(2)),
        hw_addr=get_random_mac(),
        length=length,
        service_ip=get_random_ip(),
        my_ip=get_random_ip(),
        is_ipv4=True,
        data_length=length - 20,
        service_port=get_random_port(),
        is_tcp=True,
        my_port=get_random_port(),
        raw_data=random.randbytes(length),
    )
    return PacketData(
        flow_id=flow_id(pkt.service_ip, pkt.my_ip, pkt.service_port, pkt.my_port),
        service="Random",
        pkt=pkt,
    )


def get_random_trace(n: int, length: int) -> PacketTrace:
    """Return ``n`` random packets of ``length`` bytes."""
    return PacketTrace([get_random_packet(length) for _ in range(n)])