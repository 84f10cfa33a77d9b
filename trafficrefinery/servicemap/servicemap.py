"""Mapping of IP addresses to services through DNS responses and prefixes."""

from __future__ import annotations

from typing import Iterable, Optional

from trafficrefinery.servicemap.dnsmap import DNSMap, DNSMessage
from trafficrefinery.servicemap.ipcache import Duration, IPCache
from trafficrefinery.servicemap.ipmap import IPMap
from trafficrefinery.servicemap.service import Service

NOT_FOUND_ENTRY_TIMEOUT = 60 * 60


class ServiceMapError(ValueError):
    """Raised when the service configuration is invalid."""


class ServiceMap:
    """Resolves IP addresses to service identifiers."""

    def __init__(self, cleanup_time: Duration, evict_time: Duration) -> None:
        self.services: list[Service] = []
        self._id_to_service: dict[int, Service] = {}
        self._name_to_service: dict[str, Service] = {}
        self._ip_cache = IPCache(cleanup_time, evict_time)
        self._ip_map = IPMap()
        self._dns_map = DNSMap()

    def config_service_map(self, services: Iterable[Service]) -> None:
        """Register services; raise ServiceMapError on duplicates or bad filters."""
        services = list(services)
        for service in services:
            self.services.append(service)
            if service.code in self._id_to_service:
                raise ServiceMapError("can not use twice the same service ID")
            self._id_to_service[service.code] = service
            if service.name in self._name_to_service:
                raise ServiceMapError("can not use twice the same service name")
            self._name_to_service[service.name] = service
        try:
            self._ip_map.add_services(services)
            self._dns_map.add_services(services)
        except ValueError as exc:
            raise ServiceMapError(str(exc)) from exc

    def parse_dns_response(self, dns: DNSMessage) -> None:
        """Cache the address of a DNS response that matches a service."""
        ip, _, services, found, ttl = self._dns_map.parse_dns_response_first_match(dns)
        if found:
            self._ip_cache.insert(ip, services, ttl)

    def lookup_ip(self, ip: str) -> list[int]:
        """Return the services of ``ip``; an empty list when it belongs to none.

        Results from the prefix table, including misses, are cached.
        """
        cached = self._ip_cache.lookup(ip)
        if cached is not None:
            return cached
        services = self._ip_map.check_prefix_first_match(ip) or []
        self._ip_cache.insert(ip, services, 0)
        return services

    def get_name(self, sid: int) -> Optional[str]:
        service = self._id_to_service.get(sid)
        return None if service is None else service.name

    def get_id(self, name: str) -> Optional[int]:
        service = self._name_to_service.get(name)
        return None if service is None else service.code

    def get_service(self, sid: int) -> Optional[Service]:
        return self._id_to_service.get(sid)