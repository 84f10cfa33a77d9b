"""Worker that turns captured frames into flow packets."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from trafficrefinery.netutils import is_rfc1918
from trafficrefinery.network.interface import NetworkInterface
from trafficrefinery.network.layers import LayerType, decode_layers
from trafficrefinery.network.packet import Direction, Packet, PacketProcessor

log = logging.getLogger(__name__)


class TrafficParser:
    """Reads frames from an interface and feeds parsed packets to a processor."""

    def __init__(self, netif: NetworkInterface, packet_processor: PacketProcessor) -> None:
        self.netif = netif
        self.packet_processor = packet_processor

    @staticmethod
    def _split(src, dst, direction):
        return (dst, src) if direction == Direction.OUT else (src, dst)

    def parse_packet(self, data: bytes, timestamp: int = 0) -> Optional[Packet]:
        """Parse one frame; return None when it lacks a transport layer or direction."""
        pkt = Packet(raw_data=data, tstamp=timestamp)
        layers = decode_layers(data)
        if layers.error is not None:
            log.debug("%s", layers.error)
        pkt.eth, pkt.ip4, pkt.ip6 = layers.eth, layers.ip4, layers.ip6
        pkt.tcp, pkt.udp = layers.tcp, layers.udp
        valid = False
        for typ in layers.types:
            if typ is LayerType.IPV4:
                ip = layers.ip4
                pkt.dir = self.netif.get_direction(layers.eth, ip)
                if pkt.dir == Direction.UNKNOWN:
                    break
                pkt.length = ip.length - 4 * ip.ihl
                service, mine = self._split(ip.src_ip, ip.dst_ip, pkt.dir)
                pkt.service_ip, pkt.my_ip = str(service), str(mine)
                net = self.netif.local_net_v4
                pkt.is_local = net is not None and service in net
                if not pkt.is_local and is_rfc1918(ip.dst_ip) and is_rfc1918(ip.src_ip):
                    pkt.is_local = True
                pkt.is_ipv4 = True
            elif typ is LayerType.IPV6:
                ip6 = layers.ip6
                pkt.length = ip6.length
                service, mine = self._split(ip6.src_ip, ip6.dst_ip, pkt.dir)
                pkt.service_ip, pkt.my_ip = str(service), str(mine)
                net = self.netif.local_net_v6
                pkt.is_local = net is not None and service in net
                pkt.is_ipv4 = False
            elif typ is LayerType.TCP:
                tcp = layers.tcp
                pkt.data_length = pkt.length - 4 * tcp.data_offset
                pkt.service_port, pkt.my_port = self._split(tcp.src_port, tcp.dst_port, pkt.dir)
                pkt.seq_number = tcp.seq
                pkt.is_tcp = True
                valid = True
            elif typ is LayerType.UDP:
                udp = layers.udp
                pkt.data_length = udp.length - 8
                pkt.service_port, pkt.my_port = self._split(udp.src_port, udp.dst_port, pkt.dir)
                pkt.is_tcp = False
                valid = True
        if not valid:
            log.debug("Read packet without required layers or with wrong direction")
            return None
        return pkt

    def parse(self, stop: threading.Event) -> None:
        """Process frames until ``stop`` is set or the source is exhausted."""
        while not stop.is_set():
            try:
                data, timestamp = self.netif.read_packet_data()
            except EOFError:
                return
            except OSError as exc:
                log.debug("read error: %s", exc)
                continue
            pkt = self.parse_packet(data, timestamp)
            if pkt is not None:
                self.packet_processor.process_packet(pkt)