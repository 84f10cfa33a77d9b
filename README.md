# trafficrefinery

A library for passive monitoring of network traffic. It decodes raw
Ethernet frames, works out the direction of each packet on an interface,
maps remote addresses to named services using DNS responses and static IP
prefixes, builds flow records with pluggable counters, and writes
periodic statistics reports as JSON.

## What is inside

- `trafficrefinery.network.layers` decodes Ethernet, 802.1Q, IPv4, IPv6,
  TCP and UDP headers. `decode_layers(data)` returns a `DecodedLayers`
  holding the layers found, in order, and the `DecodeError` that stopped
  decoding, if any.
- `trafficrefinery.network.packet` defines `Packet` (the metadata of one
  captured packet), `Direction`, `IfStats`, `HandleConfig`, and the
  `Handle` and `PacketProcessor` protocols.
- `trafficrefinery.network.interface` provides `NetworkInterface`, which
  works out traffic direction in host, router, mirror or IP mode
  (`get_direction`). In mirror mode the switch MAC is found by running
  `arp -a` (`get_mirror_mac`, `parse_arp_output`); otherwise the interface
  addresses are read with psutil (`get_mac_from_name`).
- `trafficrefinery.network.traffic.TrafficParser` turns frames into
  `Packet` objects (`parse_packet`) and, in `parse(stop)`, feeds them to a
  packet processor until a `threading.Event` is set or the source raises
  `EOFError`.
- `trafficrefinery.network.dnsparser` decodes DNS messages carried over
  UDP or TCP port 53 (`decode_dns`) and `DNSParser` records their answers
  in a `ServiceMap`.
- `trafficrefinery.network.trace` reads classic pcap files (`read_pcap`)
  into ordered packet traces (`get_trace`, `get_trace_with_services`) and
  DNS traces (`get_dns_trace`), computes flow identifiers (`flow_id`, an
  MD5 of the endpoints) and produces random packets and traces for load
  testing (`get_random_packet`, `get_random_trace`).
- `trafficrefinery.servicemap` maps IP addresses to service codes.
  `ServiceMap` matches DNS responses against each service's domain
  substrings, then its domain regular expressions, and caches the answer
  address for the record's TTL (`IPCache`). Addresses not learned from DNS
  are looked up in the static prefix table (`IPMap`); the result,
  including a miss, is cached.
- `trafficrefinery.flowstats.flow` holds `Flow`, a flow's identity with a
  list of counters following the `Counter` protocol, serialised to JSON by
  `collect()`, and `FlowService`, a service name with the counter names to
  collect. `trafficrefinery.flowstats.tuple.TupleFlow` computes a
  direction-independent FNV-1a hash over an address/port 4-tuple.
- `trafficrefinery.stats.printer.Printer` runs `StatsCollector`s in
  threads and writes their reports under an output directory: either
  appending to a temporary file that is moved to `<base>.<time>.out` every
  period, or replacing `<base>.out` on each report. `OutJson` is the report
  envelope. `trafficrefinery.stats.ifstats.IfStatsPrinter` reports packets
  received and dropped per interface.
- `trafficrefinery.cryptopan.CryptoPAn` anonymises IPv4 and IPv6
  addresses while preserving shared prefixes.
- `trafficrefinery.welford.Welford` keeps a running mean and standard
  deviation, optionally rejecting outliers (`check_and_add_value`).
- `trafficrefinery.netutils` classifies addresses (`is_private_ip`,
  `is_rfc1918`) and finds a local interface with a global IPv4 address
  (`get_first_interface`); `trafficrefinery.fileutils` locates the
  enclosing `traffic-refinery` directory and reads line files.

## Examples

Running statistics:

```python
from trafficrefinery.welford import Welford

w = Welford()
for value in (1.0, 2.0, 3.0, 4.0):
    w.add_value(value)
print(w.avg, w.std_dev)
```

Prefix-preserving anonymisation. The keying material is 32 bytes: the
first 16 are the AES key, the last 16 derive the pad.

```python
from trafficrefinery.cryptopan import CryptoPAn

cpan = CryptoPAn(bytes(range(32)))  # made-up keying material
print(cpan.anonymize("192.0.2.10"))
```

Keying material of any other length raises `KeySizeError`.

Mapping addresses to services:

```python
from trafficrefinery.servicemap.dnsmap import DNSAnswer, DNSMessage, DNSQuestion
from trafficrefinery.servicemap.service import Service, ServiceFilter
from trafficrefinery.servicemap.servicemap import ServiceMap

smap = ServiceMap(cleanup_time=60, evict_time=300)
smap.config_service_map([
    Service(
        name="Example",
        code=0,
        service_filter=ServiceFilter(
            domains_string=["example.com"],
            prefixes=["198.51.100.0/24"],
        ),
    ),
])

print(smap.lookup_ip("198.51.100.7"))  # [0], from the prefix table

smap.parse_dns_response(DNSMessage(
    questions=[DNSQuestion(name="www.example.com")],
    answers=[DNSAnswer(ip="203.0.113.5", ttl=600)],
))
print(smap.get_name(smap.lookup_ip("203.0.113.5")[0]))  # Example
```

Configuring two services with the same name or the same code, or a
service with an invalid prefix or regular expression, raises
`ServiceMapError`.

## What the package does not do

- It has no command-line program or daemon; it is a library to build one
  with.
- It ships no capture drivers. A `NetworkInterface` reads through any
  object following the `Handle` protocol (`init`, `read_packet_data`,
  `stats`); live capture from a network card has to be supplied by the
  caller. Offline input is available through the pcap reader in
  `trafficrefinery.network.trace`.
- It has no flow cache and no ready-made counters. `Flow` accepts any
  object following the `Counter` protocol, and keeping flows keyed by
  `flow_id` is left to the packet processor the caller provides.

## Running the tests

Install the `test` extra and run pytest from the project root.