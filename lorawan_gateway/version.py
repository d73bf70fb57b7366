"""Gateway (validator) version numbers packed into a single integer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GatewayVersion:
    """A semantic version decoded from the packed integer a gateway reports."""

    major: int
    minor: int
    patch: int

    @classmethod
    def from_int(cls, value: int) -> GatewayVersion:
        """Decode a version packed as ``MMMmmmpppp`` in decimal digits."""
        patch = value % 10_000
        minor = (value // 10_000) % 1_000
        major = (value // 10_000_000) % 1_000
        return cls(major=major, minor=minor, patch=patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"