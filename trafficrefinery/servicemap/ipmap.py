"""Mapping of network prefixes to services."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from trafficrefinery.servicemap.service import Service

_Network = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]
_Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass
class _Prefix:
    network: _Network
    services: list[int] = field(default_factory=list)


def _parse_ip(ip: str) -> Optional[_Address]:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return None
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


class IPMap:
    """Static list of network prefixes, each tagged with the services it belongs to."""

    def __init__(self) -> None:
        self._prefixes: list[_Prefix] = []

    def add_service(self, code: int, prefixes: Iterable[str]) -> None:
        """Tag each CIDR in ``prefixes`` with ``code``; raise ValueError on a bad CIDR."""
        for text in prefixes:
            network = ipaddress.ip_network(text, strict=False)
            existing = next((p for p in self._prefixes if p.network == network), None)
            if existing is not None:
                existing.services.append(code)
            else:
                self._prefixes.append(_Prefix(network, [code]))

    def add_services(self, services: Iterable[Service]) -> None:
        """Add the prefixes of every service."""
        for service in services:
            self.add_service(service.code, service.service_filter.prefixes)

    def check_prefix_first_match(self, ip: str) -> Optional[list[int]]:
        """Return the services of the first prefix holding ``ip``, or None."""
        addr = _parse_ip(ip)
        if addr is None:
            return None
        for entry in self._prefixes:
            if addr in entry.network:
                return list(entry.services)
        return None

    def check_prefix_all_matches(self, ip: str) -> list[int]:
        """Return the services of every prefix holding ``ip``, in insertion order."""
        addr = _parse_ip(ip)
        if addr is None:
            return []
        return [sid for entry in self._prefixes if addr in entry.network for sid in entry.services]