"""Worker that reads DNS responses from an interface and feeds the service map."""

from __future__ import annotations

import logging
import threading
from typing import Optional

import dns.exception
import dns.message
import dns.rdatatype

from trafficrefinery.network.layers import DecodedLayers, DecodeError, decode_layers
from trafficrefinery.servicemap.dnsmap import DNSAnswer, DNSMessage, DNSQuestion
from trafficrefinery.servicemap.servicemap import ServiceMap

log = logging.getLogger(__name__)

DNS_PORT = 53
_ETH_HEADER = 14
_DOT1Q_HEADER = 4
_IPV6_HEADER = 40
_UDP_HEADER = 8
_ADDRESS_TYPES = (dns.rdatatype.A, dns.rdatatype.AAAA)


def decode_dns(payload: bytes) -> DNSMessage:
    """Decode a DNS message from its wire form.

    Raises DecodeError when the payload is not a valid DNS message.
    """
    try:
        msg = dns.message.from_wire(bytes(payload))
    except (dns.exception.DNSException, ValueError) as exc:
        raise DecodeError(f"invalid DNS message: {exc}") from exc
    questions = [DNSQuestion(name=q.name.to_text(omit_final_dot=True)) for q in msg.question]
    answers = [
        DNSAnswer(
            ip=rdata.address if rrset.rdtype in _ADDRESS_TYPES else None,
            ttl=rrset.ttl,
        )
        for rrset in msg.answer
        for rdata in rrset
    ]
    return DNSMessage(questions=questions, answers=answers)


def _dns_payload(data: bytes, layers: DecodedLayers) -> Optional[bytes]:
    """Return the DNS payload carried by a decoded frame, or None if there is none."""
    if layers.eth is None:
        return None
    offset = _ETH_HEADER + (_DOT1Q_HEADER if layers.dot1q is not None else 0)
    if layers.ip4 is not None:
        end = offset + layers.ip4.length
        offset += layers.ip4.ihl * 4
    elif layers.ip6 is not None:
        offset += _IPV6_HEADER
        end = offset + layers.ip6.length
    else:
        return None
    udp, tcp = layers.udp, layers.tcp
    if udp is not None and DNS_PORT in (udp.src_port, udp.dst_port):
        stop = min(end, offset + udp.length)
        payload = data[offset + _UDP_HEADER:stop]
        return payload or None
    if tcp is not None and DNS_PORT in (tcp.src_port, tcp.dst_port):
        segment = data[offset + tcp.data_offset * 4:end]
        if len(segment) < 2:
            return None
        size = int.from_bytes(segment[:2], "big")
        return segment[2:2 + size] or None
    return None


class DNSParser:
    """Reads frames from an interface and records DNS answers in a service map."""

    def __init__(self, netif, sm: ServiceMap) -> None:
        self.netif = netif
        self.sm = sm

    def parse_packet(self, data: bytes) -> Optional[DNSMessage]:
        """Feed the DNS message of one frame to the service map and return it.

        Returns None when the frame carries no DNS payload; raises DecodeError
        when the payload is not a valid DNS message.
        """
        data = bytes(data)
        layers = decode_layers(data)
        payload = _dns_payload(data, layers)
        if payload is None:
            return None
        message = decode_dns(payload)
        self.sm.parse_dns_response(message)
        return message

    def parse(self, stop: threading.Event) -> None:
        """Process frames until ``stop`` is set or the source is exhausted."""
        while not stop.is_set():
            try:
                data, _ = self.netif.read_packet_data()
            except EOFError:
                return
            except OSError as exc:
                log.debug("read error: %s", exc)
                continue
            try:
                self.parse_packet(data)
            except DecodeError as exc:
                log.warning("Error parsing DNS packet: %s", exc)