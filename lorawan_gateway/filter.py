"""Routing filters: xor16 filters over device EUIs and device address ranges."""

from __future__ import annotations

import struct
from dataclasses import dataclass

_M64 = (1 << 64) - 1
_M32 = (1 << 32) - 1

_P1 = 0x9E3779B185EBCA87
_P2 = 0xC2B2AE3D27D4EB4F
_P3 = 0x165667B19E3779F9
_P4 = 0x85EBCA77C2B2AE63
_P5 = 0x27D4EB2F165667C5

BITS_23 = 8388607  # largest unsigned number in 23 bits
BITS_25 = 33554431  # largest unsigned number in 25 bits


def _rotl(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (64 - bits))) & _M64


def _round(acc: int, lane: int) -> int:
    acc = (acc + lane * _P2) & _M64
    return (_rotl(acc, 31) * _P1) & _M64


def _merge(h: int, v: int) -> int:
    h ^= _round(0, v)
    return (h * _P1 + _P4) & _M64


def xxh64(data: bytes, seed: int = 0) -> int:
    """Compute the 64-bit xxHash of ``data``."""
    data = bytes(data)
    seed &= _M64
    length = len(data)
    offset = 0
    if length >= 32:
        v1 = (seed + _P1 + _P2) & _M64
        v2 = (seed + _P2) & _M64
        v3 = seed
        v4 = (seed - _P1) & _M64
        offset = length - length % 32
        for a, b, c, d in struct.iter_unpack("<4Q", data[:offset]):
            v1, v2, v3, v4 = _round(v1, a), _round(v2, b), _round(v3, c), _round(v4, d)
        h = (_rotl(v1, 1) + _rotl(v2, 7) + _rotl(v3, 12) + _rotl(v4, 18)) & _M64
        for v in (v1, v2, v3, v4):
            h = _merge(h, v)
    else:
        h = (seed + _P5) & _M64
    h = (h + length) & _M64

    tail = data[offset:]
    whole = len(tail) // 8 * 8
    for (lane,) in struct.iter_unpack("<Q", tail[:whole]):
        h ^= _round(0, lane)
        h = (_rotl(h, 27) * _P1 + _P4) & _M64
    tail = tail[whole:]
    if len(tail) >= 4:
        (lane,) = struct.unpack("<I", tail[:4])
        h ^= (lane * _P1) & _M64
        h = (_rotl(h, 23) * _P2 + _P3) & _M64
        tail = tail[4:]
    for byte in tail:
        h ^= (byte * _P5) & _M64
        h = (_rotl(h, 11) * _P1) & _M64

    h ^= h >> 33
    h = (h * _P2) & _M64
    h ^= h >> 29
    h = (h * _P3) & _M64
    h ^= h >> 32
    return h


def _murmur64(h: int) -> int:
    h ^= h >> 33
    h = (h * 0xFF51AFD7ED558CCD) & _M64
    h ^= h >> 33
    h = (h * 0xC4CEB9FE1A85EC53) & _M64
    h ^= h >> 33
    return h


@dataclass(frozen=True)
class Eui:
    """A device/application EUI pair from a join request."""

    deveui: int
    appeui: int


@dataclass(frozen=True)
class EuiFilter:
    """A serialized xor16 filter over hashed EUI pairs."""

    seed: int
    block_length: int
    fingerprints: tuple[int, ...]

    def __repr__(self) -> str:
        return (
            f"EuiFilter(seed={self.seed}, blocks={self.block_length}, "
            f"fingerprints={len(self.fingerprints)})"
        )

    @classmethod
    def from_bin(cls, data: bytes) -> EuiFilter:
        """Decode the little-endian seed, block length and fingerprints."""
        data = bytes(data)
        if len(data) < 16:
            raise ValueError("eui filter data too short for header")
        seed, block_length = struct.unpack_from("<QQ", data)
        count = block_length * 3
        if len(data) < 16 + 2 * count:
            raise ValueError("eui filter data too short for fingerprints")
        fingerprints = struct.unpack_from(f"<{count}H", data, 16)
        return cls(seed=seed, block_length=block_length, fingerprints=fingerprints)

    def _contains_key(self, key: int) -> bool:
        h = _murmur64((key + self.seed) & _M64)
        fingerprint = (h ^ (h >> 32)) & 0xFFFF
        r0 = h & _M32
        r1 = _rotl(h, 21) & _M32
        r2 = _rotl(h, 42) & _M32
        bl = self.block_length
        h0 = (r0 * bl) >> 32
        h1 = ((r1 * bl) >> 32) + bl
        h2 = ((r2 * bl) >> 32) + 2 * bl
        fp = self.fingerprints
        return fingerprint == fp[h0] ^ fp[h1] ^ fp[h2]

    def contains(self, eui: Eui) -> bool:
        """Whether the EUI pair is (probably) in the filter."""
        if self.block_length == 0:
            return False
        key = xxh64(struct.pack("<QQ", eui.deveui, eui.appeui), 0)
        return self._contains_key(key)


@dataclass(frozen=True)
class DevAddrFilter:
    """A contiguous range of device addresses decoded from a subnet mask."""

    base: int
    size: int

    @classmethod
    def from_bin(cls, data: bytes) -> DevAddrFilter:
        """Decode a 6-byte big-endian base/mask pair."""
        data = bytes(data)
        if len(data) != 6:
            raise ValueError("devaddr filter must be 6 bytes")
        value = int.from_bytes(data, "big")
        mask = value & BITS_23
        base = (value >> 23) & BITS_25
        size = (((mask ^ BITS_23) << 2) + 0b11 + 1) & _M32
        return cls(base=base, size=size)

    def contains(self, devaddr: int) -> bool:
        """Whether the low 23 bits of the address fall in this range."""
        addr_base = BITS_23 & devaddr
        return self.base <= addr_base < self.base + self.size