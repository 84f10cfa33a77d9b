"""Matching of DNS responses against the configured service domains."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from trafficrefinery.servicemap.service import Service

log = logging.getLogger(__name__)


@dataclass
class DNSQuestion:
    name: Union[str, bytes] = ""


@dataclass
class DNSAnswer:
    ip: Optional[str] = None
    ttl: int = 0


@dataclass
class DNSMessage:
    """The parts of a DNS message used for service matching."""

    questions: list[DNSQuestion] = field(default_factory=list)
    answers: list[DNSAnswer] = field(default_factory=list)


class _SubstringMatcher:
    """Finds which of a set of strings occurs first in a text."""

    def __init__(self, strings: Iterable[str]) -> None:
        self._strings = [s for s in strings if s]

    def first_match(self, text: str) -> Optional[str]:
        """Return the string whose occurrence ends earliest, the longest on a tie."""
        best: Optional[tuple[tuple[int, int], str]] = None
        for s in self._strings:
            idx = text.find(s)
            if idx < 0:
                continue
            key = (idx + len(s), -len(s))
            if best is None or key < best[0]:
                best = (key, s)
        return None if best is None else best[1]


@dataclass
class _Domain:
    matcher: _SubstringMatcher
    services: list[int]


@dataclass
class _Pattern:
    regex: re.Pattern
    services: list[int]


def _question_name(q: DNSQuestion) -> str:
    name = q.name
    return name.decode("utf-8", "replace") if isinstance(name, (bytes, bytearray)) else name


def _first_answer(dns: DNSMessage) -> tuple[str, int]:
    for answer in dns.answers:
        if answer.ip is not None:
            try:
                ip = str(ipaddress.ip_address(answer.ip))
            except ValueError:
                ip = str(answer.ip)
            log.debug("Adding DNS entry for IP %s", ip)
            return ip, int(answer.ttl)
    return "", 0


class DNSMap:
    """Domain strings and regexes, each tagged with a service."""

    def __init__(self) -> None:
        self._domains: list[_Domain] = []
        self._patterns: list[_Pattern] = []

    def add_service(self, code: int, domains_string: Iterable[str], domains_regex: Iterable[str]) -> None:
        """Register the domain strings and regexes of a service.

        Raises ValueError when a regex does not compile.
        """
        strings = list(domains_string)
        if strings:
            self._domains.append(_Domain(_SubstringMatcher(strings), [code]))
        for pattern in domains_regex:
            try:
                regex = re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid domain regex {pattern!r}: {exc}") from exc
            self._patterns.append(_Pattern(regex, [code]))

    def add_services(self, services: Iterable[Service]) -> None:
        """Register every service's domain filters."""
        for s in services:
            try:
                self.add_service(s.code, s.service_filter.domains_string, s.service_filter.domains_regex)
            except ValueError as exc:
                log.error("DNSMap error: %s", exc)
                raise

    def parse_dns_response_first_match(self, dns: DNSMessage) -> tuple[str, str, list[int], bool, int]:
        """Match a response by domain string, then by regex.

        Returns ``(ip, domain, services, found, ttl)`` for the first answer
        carrying an address and the first matching filter.
        """
        ip, ttl = _first_answer(dns)
        if not ip:
            log.debug("No IP in DNS answer")
            return "", "", [], False, 0
        for q in dns.questions[:1]:
            name = _question_name(q)
            for domain in self._domains:
                match = domain.matcher.first_match(name)
                if match is not None:
                    return ip, match, list(domain.services), True, ttl
            for pattern in self._patterns:
                if pattern.regex.search(name):
                    return ip, pattern.regex.pattern, list(pattern.services), True, ttl
        log.debug("IP %s has no service match", ip)
        return ip, "", [], False, ttl

    def parse_dns_response_all_matches(self, dns: DNSMessage) -> tuple[str, list[str], list[int], bool, int]:
        """Match a response against every domain string, then the first matching regex.

        Returns ``(ip, domains, services, found, ttl)``.
        """
        ip, ttl = _first_answer(dns)
        domains: list[str] = []
        services: list[int] = []
        if not ip:
            return "", domains, services, False, 0
        found = False
        for q in dns.questions[:1]:
            name = _question_name(q)
            for domain in self._domains:
                match = domain.matcher.first_match(name)
                if match is not None:
                    found = True
                    services.extend(domain.services)
                    domains.append(match)
            for pattern in self._patterns:
                if pattern.regex.search(name):
                    services.extend(pattern.services)
                    domains.append(pattern.regex.pattern)
                    return ip, domains, services, True, ttl
        return ip, domains, services, found, ttl