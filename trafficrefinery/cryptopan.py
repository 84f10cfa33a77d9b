"""Prefix-preserving IP address anonymization (Crypto-PAn)."""

from __future__ import annotations

import ipaddress
from typing import Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_SIZE = 16
KEY_SIZE = 16
SIZE = KEY_SIZE + BLOCK_SIZE

_MASK128 = (1 << 128) - 1

Address = Union[str, bytes, bytearray, ipaddress.IPv4Address, ipaddress.IPv6Address]


class KeySizeError(ValueError):
    """Raised when the keying material has the wrong length."""

    def __init__(self, size: int) -> None:
        super().__init__(f"invalid key size {size}")
        self.size = size


class CryptoPAn:
    """A Crypto-PAn instance initialised with a 32-byte key."""

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if len(key) != SIZE:
            raise KeySizeError(len(key))
        cipher = Cipher(algorithms.AES(key[:KEY_SIZE]), modes.ECB())
        self._encryptor = cipher.encryptor()
        self._pad = int.from_bytes(self._encrypt(key[KEY_SIZE:]), "big")

    def _encrypt(self, block: bytes) -> bytes:
        return self._encryptor.update(block)

    def _anonymize_int(self, value: int, bits: int) -> int:
        orig = value << (128 - bits)
        pad_stream = 0
        for pos in range(bits):
            # The top `pos` bits come from the address, the rest from the pad.
            high = (((1 << pos) - 1) << (128 - pos)) & _MASK128
            block = (orig & high) | (self._pad & ~high & _MASK128)
            out = self._encrypt(block.to_bytes(BLOCK_SIZE, "big"))
            pad_stream = (pad_stream << 1) | (out[0] >> 7)
        return pad_stream ^ value

    def anonymize(self, addr: Address) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        """Anonymize an IPv4 or IPv6 address, preserving shared prefixes."""
        if isinstance(addr, (bytes, bytearray)):
            parsed = ipaddress.ip_address(bytes(addr))
        elif isinstance(addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            parsed = addr
        else:
            parsed = ipaddress.ip_address(addr)
        if isinstance(parsed, ipaddress.IPv6Address) and parsed.ipv4_mapped is not None:
            parsed = parsed.ipv4_mapped
        if isinstance(parsed, ipaddress.IPv4Address):
            return ipaddress.IPv4Address(self._anonymize_int(int(parsed), 32))
        return ipaddress.IPv6Address(self._anonymize_int(int(parsed), 128))