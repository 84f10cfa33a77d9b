"""Network interface configuration and traffic direction detection."""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
import subprocess
from dataclasses import dataclass
from typing import Optional, Union

import psutil

from trafficrefinery.netutils import is_private_ip
from trafficrefinery.network.layers import Ethernet, IPv4
from trafficrefinery.network.packet import Direction, Handle, HandleConfig

log = logging.getLogger(__name__)

HOST_MODE = "host"
AP_MODE = "router"
MIRROR_MODE = "mirror"
REPLAY_MODE = "replay"
IP_MODE = "ip"

HANDLE_TYPES = {"ring": 0, "pcap": 1, "afpacket": 2}

DNS_FILTER = "udp and port 53"
NOT_DNS_FILTER = "tcp or (udp and not port 53)"

_MAC_RE = re.compile(r"^[0-9a-fA-F]{2}([:-][0-9a-fA-F]{2}){5}$")


def _parse_mac(text: str) -> str:
    if not _MAC_RE.match(text):
        raise ValueError(f"invalid MAC address {text!r}")
    return text.replace("-", ":").lower()


@dataclass
class NetworkInterfaceConfiguration:
    driver: str = "pcap"
    name: str = ""
    mode: str = HOST_MODE
    filter: str = ""
    snap_len: int = 0
    clustered: bool = False
    cluster_id: int = 0
    replay: bool = False
    replay_mac: str = ""
    zero_copy: bool = False
    fan_out: bool = False


def parse_arp_output(text: str, iface: str) -> str:
    """Find the MAC of the mirror switch on ``iface`` in ``arp -a`` output."""
    for line in text.split("\n"):
        fields = line.split(" ")
        if len(fields) > 6 and iface in (fields[6], fields[5]):
            try:
                return _parse_mac(fields[3])
            except ValueError:
                continue
    raise LookupError(f"Could not find mac address of mirror switch on {iface}")


def get_mirror_mac(iface: str) -> str:
    """Run ``arp -a`` and return the MAC of the mirror switch on ``iface``."""
    out = subprocess.run(["arp", "-a"], capture_output=True, text=True, check=True).stdout
    return parse_arp_output(out, iface)


def _global_unicast(addr) -> bool:
    return not (addr.is_unspecified or addr.is_loopback or addr.is_multicast or addr.is_link_local
                or str(addr) == "255.255.255.255")


def get_mac_from_name(name: str):
    """Return (MAC, IPv4 network, IPv6 network, IPv4 address) of interface ``name``."""
    hw, net4, net6, ip4 = "", None, None, None
    for addr in psutil.net_if_addrs().get(name, []):
        if addr.family == psutil.AF_LINK:
            try:
                hw = _parse_mac(addr.address)
            except ValueError:
                pass
        elif addr.family in (socket.AF_INET, socket.AF_INET6) and addr.netmask:
            try:
                iface = ipaddress.ip_interface(f"{addr.address.split('%')[0]}/{addr.netmask}")
            except ValueError:
                continue
            if not _global_unicast(iface.ip):
                continue
            if iface.version == 4:
                net4, ip4 = iface.network, iface.ip
            else:
                net6 = iface.network
    return hw, net4, net6, ip4


class NetworkInterface:
    """An interface in a given capture mode, reading through a capture handle."""

    def __init__(self, conf: NetworkInterfaceConfiguration, handle: Handle) -> None:
        self.name = conf.name
        self.mode = conf.mode
        self.local_net_v4: Optional[ipaddress.IPv4Network] = None
        self.local_net_v6: Optional[ipaddress.IPv6Network] = None
        self.local_ipv4: Optional[ipaddress.IPv4Address] = None
        if conf.replay:
            self.hw_addr = _parse_mac(conf.replay_mac)
        elif conf.mode == MIRROR_MODE:
            self.hw_addr = get_mirror_mac(self.name)
        else:
            self.hw_addr, self.local_net_v4, self.local_net_v6, self.local_ipv4 = get_mac_from_name(self.name)
        if conf.driver not in HANDLE_TYPES:
            raise ValueError("wrong interface driver type")
        self.handle_type = HANDLE_TYPES[conf.driver]
        self.handle = handle
        handle.init(HandleConfig(
            name=conf.name, filter=conf.filter, snap_len=conf.snap_len,
            clustered=conf.clustered, cluster_id=conf.cluster_id,
            zero_copy=conf.zero_copy, fan_out=conf.fan_out,
        ))

    def get_direction(self, eth: Ethernet, ip: Optional[IPv4]) -> Direction:
        """Tell whether a frame is incoming, outgoing, or of unknown direction."""
        if self.mode in (AP_MODE, MIRROR_MODE):
            if eth.dst_mac == self.hw_addr:
                return Direction.OUT
            if eth.src_mac == self.hw_addr:
                return Direction.IN
            return Direction.UNKNOWN
        if self.mode == HOST_MODE:
            if eth.src_mac == self.hw_addr:
                return Direction.OUT
            if eth.dst_mac == self.hw_addr:
                return Direction.IN
            return Direction.UNKNOWN
        if self.mode == IP_MODE:
            if ip is None:
                log.warning("IP layer is nil in ipMode")
                return Direction.UNKNOWN
            src_priv, dst_priv = is_private_ip(ip.src_ip), is_private_ip(ip.dst_ip)
            if src_priv and not dst_priv:
                return Direction.OUT
            if dst_priv and not src_priv:
                return Direction.IN
            log.warning("Ambiguous direction: %s -> %s", ip.src_ip, ip.dst_ip)
            return Direction.UNKNOWN
        raise ValueError("interface mode not set")

    def read_packet_data(self) -> tuple[bytes, int]:
        return self.handle.read_packet_data()


Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]