"""Passive network traffic monitoring: packet decoding, service mapping and flow statistics."""

__version__ = "0.1.0"