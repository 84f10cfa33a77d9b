"""Decoding of Ethernet, 802.1Q, IPv4, IPv6, TCP and UDP headers from raw frames."""

from __future__ import annotations

import enum
import ipaddress
import struct
from dataclasses import dataclass, field
from typing import Optional

ETHERTYPE_IPV4 = 0x0800
ETHERTYPE_IPV6 = 0x86DD
ETHERTYPE_DOT1Q = 0x8100
IPPROTO_TCP = 6
IPPROTO_UDP = 17


class DecodeError(ValueError):
    """Raised or recorded when a layer cannot be decoded."""


class LayerType(enum.Enum):
    ETHERNET = "Ethernet"
    DOT1Q = "Dot1Q"
    IPV4 = "IPv4"
    IPV6 = "IPv6"
    TCP = "TCP"
    UDP = "UDP"


def format_mac(raw: bytes) -> str:
    """Return a MAC address as lower-case colon-separated hex."""
    return ":".join(f"{b:02x}" for b in raw)


@dataclass
class Ethernet:
    src_mac: str
    dst_mac: str
    ethertype: int


@dataclass
class Dot1Q:
    priority: int
    vlan_id: int
    ethertype: int


@dataclass
class IPv4:
    ihl: int
    length: int
    protocol: int
    src_ip: ipaddress.IPv4Address
    dst_ip: ipaddress.IPv4Address


@dataclass
class IPv6:
    length: int
    next_header: int
    src_ip: ipaddress.IPv6Address
    dst_ip: ipaddress.IPv6Address


@dataclass
class TCP:
    src_port: int
    dst_port: int
    seq: int
    data_offset: int


@dataclass
class UDP:
    src_port: int
    dst_port: int
    length: int


@dataclass
class DecodedLayers:
    """Layers decoded from one frame, in order, and the error that stopped decoding."""

    types: list[LayerType] = field(default_factory=list)
    eth: Optional[Ethernet] = None
    dot1q: Optional[Dot1Q] = None
    ip4: Optional[IPv4] = None
    ip6: Optional[IPv6] = None
    tcp: Optional[TCP] = None
    udp: Optional[UDP] = None
    error: Optional[DecodeError] = None


def _decode_transport(proto: int, payload: bytes, out: DecodedLayers) -> None:
    if proto == IPPROTO_TCP:
        if len(payload) < 20:
            raise DecodeError("TCP header too short")
        src, dst, seq = struct.unpack_from("!HHI", payload)
        offset = payload[12] >> 4
        if offset < 5:
            raise DecodeError(f"invalid TCP data offset {offset}")
        out.tcp = TCP(src, dst, seq, offset)
        out.types.append(LayerType.TCP)
    elif proto == IPPROTO_UDP:
        if len(payload) < 8:
            raise DecodeError("UDP header too short")
        src, dst, length = struct.unpack_from("!HHH", payload)
        out.udp = UDP(src, dst, length)
        out.types.append(LayerType.UDP)
    else:
        raise DecodeError(f"unsupported IP protocol {proto}")


def _decode(data: bytes, out: DecodedLayers) -> None:
    if len(data) < 14:
        raise DecodeError("Ethernet frame too short")
    ethertype = struct.unpack_from("!H", data, 12)[0]
    out.eth = Ethernet(format_mac(data[6:12]), format_mac(data[0:6]), ethertype)
    out.types.append(LayerType.ETHERNET)
    rest = data[14:]
    if ethertype == ETHERTYPE_DOT1Q:
        if len(rest) < 4:
            raise DecodeError("Dot1Q header too short")
        tci, ethertype = struct.unpack_from("!HH", rest)
        out.dot1q = Dot1Q(tci >> 13, tci & 0x0FFF, ethertype)
        out.types.append(LayerType.DOT1Q)
        rest = rest[4:]
    if ethertype == ETHERTYPE_IPV4:
        if len(rest) < 20:
            raise DecodeError("IPv4 header too short")
        if rest[0] >> 4 != 4:
            raise DecodeError("invalid IPv4 version")
        ihl = rest[0] & 0x0F
        if ihl < 5:
            raise DecodeError(f"invalid IPv4 header length {ihl}")
        length = struct.unpack_from("!H", rest, 2)[0]
        if length < ihl * 4 or len(rest) < ihl * 4:
            raise DecodeError("IPv4 length too small")
        out.ip4 = IPv4(
            ihl,
            length,
            rest[9],
            ipaddress.IPv4Address(rest[12:16]),
            ipaddress.IPv4Address(rest[16:20]),
        )
        out.types.append(LayerType.IPV4)
        _decode_transport(rest[9], rest[ihl * 4:length], out)
    elif ethertype == ETHERTYPE_IPV6:
        if len(rest) < 40:
            raise DecodeError("IPv6 header too short")
        if rest[0] >> 4 != 6:
            raise DecodeError("invalid IPv6 version")
        length = struct.unpack_from("!H", rest, 4)[0]
        out.ip6 = IPv6(
            length,
            rest[6],
            ipaddress.IPv6Address(rest[8:24]),
            ipaddress.IPv6Address(rest[24:40]),
        )
        out.types.append(LayerType.IPV6)
        _decode_transport(rest[6], rest[40:40 + length], out)
    else:
        raise DecodeError(f"unsupported ethertype 0x{ethertype:04x}")


def decode_layers(data: bytes) -> DecodedLayers:
    """Decode as many layers of ``data`` as possible.

    Decoding stops at the first failure, which is kept in ``error``; the layers
    decoded before it remain available.
    """
    out = DecodedLayers()
    try:
        _decode(bytes(data), out)
    except DecodeError as exc:
        out.error = exc
    return out