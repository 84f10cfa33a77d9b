import ipaddress
import struct

from trafficrefinery.network.layers import (
    DecodeError,
    LayerType,
    decode_layers,
    format_mac,
)

SRC_MAC = bytes([2, 0, 0, 0, 0, 1])
DST_MAC = bytes([2, 0, 0, 0, 0, 2])


def ipv4_frame(proto, transport, src="10.0.0.1", dst="8.8.8.8", vlan=None):
    total = 20 + len(transport)
    ip = struct.pack("!BBHHHBBH4s4s", 0x45, 0, total, 0, 0, 64, proto, 0,
                     ipaddress.IPv4Address(src).packed, ipaddress.IPv4Address(dst).packed)
    if vlan is not None:
        eth = DST_MAC + SRC_MAC + struct.pack("!HHH", 0x8100, vlan, 0x0800)
    else:
        eth = DST_MAC + SRC_MAC + struct.pack("!H", 0x0800)
    return eth + ip + transport


def tcp_header(sport, dport, seq):
    return struct.pack("!HHIIBBHHH", sport, dport, seq, 0, 5 << 4, 0, 0, 0, 0)


def test_tcp_over_ipv4():
    d = decode_layers(ipv4_frame(6, tcp_header(1234, 443, 99) + b"abc"))
    assert d.error is None
    assert d.types == [LayerType.ETHERNET, LayerType.IPV4, LayerType.TCP]
    assert d.eth.src_mac == format_mac(SRC_MAC)
    assert d.ip4.src_ip == ipaddress.IPv4Address("10.0.0.1")
    assert (d.tcp.src_port, d.tcp.dst_port, d.tcp.seq) == (1234, 443, 99)
    assert d.tcp.data_offset == 5


def test_udp_with_vlan():
    udp = struct.pack("!HHHH", 53, 5353, 12, 0) + b"data"
    d = decode_layers(ipv4_frame(17, udp, vlan=7))
    assert d.types == [LayerType.ETHERNET, LayerType.DOT1Q, LayerType.IPV4, LayerType.UDP]
    assert d.dot1q.vlan_id == 7
    assert d.udp.length == 12


def test_ipv6_udp():
    udp = struct.pack("!HHHH", 1, 2, 8, 0)
    ip6 = struct.pack("!IHBB", 6 << 28, len(udp), 17, 64)
    ip6 += ipaddress.IPv6Address("2001:db8::1").packed + ipaddress.IPv6Address("2001:db8::2").packed
    frame = DST_MAC + SRC_MAC + struct.pack("!H", 0x86DD) + ip6 + udp
    d = decode_layers(frame)
    assert d.types[-2:] == [LayerType.IPV6, LayerType.UDP]
    assert d.ip6.dst_ip == ipaddress.IPv6Address("2001:db8::2")


def test_truncated_frame_records_error():
    d = decode_layers(b"\x00" * 5)
    assert isinstance(d.error, DecodeError)
    assert d.types == []


def test_truncated_tcp_keeps_ip_layer():
    d = decode_layers(ipv4_frame(6, b"\x00" * 4))
    assert isinstance(d.error, DecodeError)
    assert d.types == [LayerType.ETHERNET, LayerType.IPV4]