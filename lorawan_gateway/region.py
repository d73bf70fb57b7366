"""LoRaWAN regions and the region parameters a gateway service reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from typing import Iterable, Sequence

_U32_MAX = 0xFFFFFFFF


class RegionError(Exception):
    """Raised for unsupported regions or missing region parameters."""

    @classmethod
    def no_region_params(cls) -> RegionError:
        return cls("no region params found or active")


class Region(IntEnum):
    """A LoRaWAN region with its wire number."""

    US915 = 0
    EU868 = 1
    EU433 = 2
    CN470 = 3
    CN779 = 4
    AU915 = 5
    AS923_1 = 6
    KR920 = 7
    IN865 = 8
    AS923_2 = 9
    AS923_3 = 10
    AS923_4 = 11

    def __str__(self) -> str:
        return self.name

    @classmethod
    def from_i32(cls, value: int) -> Region:
        """Look up a region by its wire number."""
        try:
            return cls(value)
        except ValueError:
            raise RegionError(f"unsupported region {value}") from None

    @classmethod
    def parse(cls, text: str) -> Region:
        """Look up a region by its name, e.g. ``"US915"``."""
        try:
            return cls[text]
        except KeyError:
            raise RegionError(f"unsupported region: {text}") from None


@dataclass(frozen=True)
class RegionParam:
    """Parameters of one channel in a region plan."""

    channel_frequency: int
    bandwidth: int
    max_eirp: int
    spreading: tuple = field(default=())


@dataclass(frozen=True)
class RegionParams:
    """Antenna gain, region and channel parameters for a gateway."""

    gain: Decimal
    region: Region
    params: tuple[RegionParam, ...]

    @classmethod
    def from_response(
        cls, region: int, gain: int, params: Iterable[RegionParam] | None
    ) -> RegionParams:
        """Build from a service response; gain and eirp are in tenths of a dB."""
        resolved = Region.from_i32(region)
        if params is None:
            raise RegionError.no_region_params()
        return cls(
            gain=Decimal(gain).scaleb(-1),
            region=resolved,
            params=tuple(params),
        )

    def __iter__(self):
        return iter(self.params)

    def max_eirp(self) -> Decimal | None:
        """The largest max EIRP among the channels, in dB."""
        if not self.params:
            return None
        best = max(p.max_eirp for p in self.params)
        return Decimal(best).scaleb(-1)

    def tx_power(self) -> int | None:
        """Transmit power: max EIRP less gain, truncated; None if out of range."""
        max_eirp = self.max_eirp()
        if max_eirp is None:
            return None
        power = int(max_eirp - self.gain)
        if power < 0 or power > _U32_MAX:
            return None
        return power


def region_params_str(params: RegionParams | None) -> str:
    """Name of the region in the given params, or ``"none"``."""
    return "none" if params is None else str(params.region)


__all__: Sequence[str] = (
    "RegionError",
    "Region",
    "RegionParam",
    "RegionParams",
    "region_params_str",
)