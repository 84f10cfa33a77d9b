"""Helpers for classifying IP addresses and finding local interfaces."""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Iterable, Union

import psutil

log = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

PRIVATE_IP_BLOCKS: tuple[IPNetwork, ...] = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "127.0.0.0/8",     # IPv4 loopback
        "10.0.0.0/8",      # RFC1918
        "172.16.0.0/12",   # RFC1918
        "192.168.0.0/16",  # RFC1918
        "::1/128",         # IPv6 loopback
        "fe80::/10",       # IPv6 link-local
    )
)

RFC1918 = ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")

_BROADCAST_V4 = ipaddress.IPv4Address("255.255.255.255")


def _as_address(ip: Union[str, bytes, IPAddress]) -> IPAddress:
    addr = ip if isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)) else ipaddress.ip_address(ip)
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def _contains(nets: Iterable[IPNetwork], ip: Union[str, bytes, IPAddress]) -> bool:
    addr = _as_address(ip)
    return any(addr.version == net.version and addr in net for net in nets)


def is_private_ip(ip: Union[str, bytes, IPAddress]) -> bool:
    """Return True if ``ip`` is loopback, RFC1918 or IPv6 link-local."""
    result = _contains(PRIVATE_IP_BLOCKS, ip)
    if result:
        log.debug("IP %s is in a private block", ip)
    return result


def to_nets(str_nets: Iterable[str]) -> list[IPNetwork]:
    """Parse CIDR strings into networks, skipping those that do not parse."""
    nets: list[IPNetwork] = []
    for text in str_nets:
        try:
            nets.append(ipaddress.ip_network(text, strict=False))
        except ValueError:
            continue
    return nets


RFC1918_NETS: tuple[IPNetwork, ...] = tuple(to_nets(RFC1918))


def is_rfc1918(ip: Union[str, bytes, IPAddress]) -> bool:
    """Return True if ``ip`` lies in an RFC1918 private range."""
    return _contains(RFC1918_NETS, ip)


def _is_global_unicast(addr: IPAddress) -> bool:
    if isinstance(addr, ipaddress.IPv4Address) and addr == _BROADCAST_V4:
        return False
    return not (
        addr.is_unspecified
        or addr.is_loopback
        or addr.is_multicast
        or addr.is_link_local
    )


def get_first_interface() -> str:
    """Return the name of the last interface holding a global unicast IPv4 address.

    Raises LookupError when no such interface exists.
    """
    found: str | None = None
    for name, addrs in psutil.net_if_addrs().items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if _is_global_unicast(ip) and str(ip) != "1.2.3.4":
                found = name
    if found is None:
        raise LookupError("No interface found")
    return found