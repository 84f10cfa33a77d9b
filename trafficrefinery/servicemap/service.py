"""Service definitions and the filters used to recognise their traffic."""

from __future__ import annotations

from dataclasses import dataclass, field

MAX_SERVICE_ID = 0xFFFF


@dataclass
class ServiceFilter:
    """Domains, domain regexes and IP prefixes that identify a service."""

    domains_string: list[str] = field(default_factory=list)
    domains_regex: list[str] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)


@dataclass
class Service:
    """A named service with a numeric identifier and its matching filter."""

    name: str
    code: int
    service_filter: ServiceFilter = field(default_factory=ServiceFilter)

    def __post_init__(self) -> None:
        if not 0 <= self.code <= MAX_SERVICE_ID:
            raise ValueError(f"service code {self.code} out of range 0..{MAX_SERVICE_ID}")