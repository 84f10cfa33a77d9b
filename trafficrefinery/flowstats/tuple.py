"""Symmetric 4-tuple flow keys with a fast FNV based hash."""

from __future__ import annotations

FNV_BASIS = 14695981039346656037
FNV_PRIME = 1099511628211
MAX_ENDPOINT_SIZE = 16

_MASK64 = (1 << 64) - 1


def fnv_hash(data: bytes) -> int:
    """Return the 64-bit FNV-1a hash of ``data``."""
    h = FNV_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & _MASK64
    return h


class TupleFlow:
    """A flow key made of two network and two transport endpoints."""

    __slots__ = ("typ", "src", "dst", "src2", "dst2")

    def __init__(self, src: bytes, dst: bytes, src2: bytes, dst2: bytes) -> None:
        for endpoint in (src, dst, src2, dst2):
            if len(endpoint) > MAX_ENDPOINT_SIZE:
                raise ValueError("flow raw byte length greater than MaxEndpointSize")
        self.typ = 0
        self.src = bytes(src)
        self.dst = bytes(dst)
        self.src2 = bytes(src2)
        self.dst2 = bytes(dst2)

    def fast_hash(self) -> int:
        """Return a hash that is the same for both directions of the flow."""
        # Addition keeps the combination commutative without making A->A flows collide.
        h = (
            fnv_hash(self.src)
            + fnv_hash(self.dst)
            + fnv_hash(self.src2)
            + fnv_hash(self.dst2)
        ) & _MASK64
        h ^= self.typ
        return (h * FNV_PRIME) & _MASK64

    def _key(self) -> tuple:
        return (self.typ, self.src, self.dst, self.src2, self.dst2)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TupleFlow):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"TupleFlow(src={self.src!r}, dst={self.dst!r}, "
            f"src2={self.src2!r}, dst2={self.dst2!r})"
        )