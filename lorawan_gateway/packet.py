"""LoRaWAN packets as received from and sent to the packet forwarder."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

from lorawan_gateway.routing import RoutingInformation

DC_PAYLOAD_SIZE = 24
_MTYPE_PROPRIETARY = 0b111
_DATARATE_RE = re.compile(r"^SF(\d+)BW(\d+)$")
_SPREADING = range(5, 13)
_BANDWIDTHS = (125, 250, 500)


class PacketError(ValueError):
    """Raised for packets that cannot be converted."""


def _parse_datarate(text: str) -> str:
    match = _DATARATE_RE.match(text)
    if not match or int(match[1]) not in _SPREADING or int(match[2]) not in _BANDWIDTHS:
        raise PacketError(f"invalid datarate: {text}")
    return text


def _fmt_float(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class Rx2Window:
    """Timing and radio settings for the second receive window."""

    timestamp: int
    frequency: float
    datarate: str


@dataclass(frozen=True)
class TxPk:
    """A downlink transmit request for the packet forwarder."""

    imme: bool
    ipol: bool
    modu: str
    codr: str
    datr: str
    freq: float
    data: bytes
    powe: int
    rfch: int
    tmst: int | str


@dataclass(frozen=True)
class Packet:
    """A LoRaWAN packet with its radio metadata."""

    payload: bytes
    timestamp: int = 0
    frequency: float = 0.0
    datarate: str = ""
    snr: float = 0.0
    signal_strength: float = 0.0
    routing: RoutingInformation | None = None
    rx2_window: Rx2Window | None = None
    oui: int = 0

    def __str__(self) -> str:
        try:
            datarate = _parse_datarate(self.datarate)
        except PacketError:
            datarate = f"invalid datarate {self.datarate!r}"
        return (
            f"@{self.timestamp} us, {self.frequency:.2f} MHz, {datarate}, "
            f"snr: {_fmt_float(self.snr)}, rssi: {_fmt_float(self.signal_strength)}, "
            f"len: {len(self.payload)}"
        )

    def hash(self) -> bytes:
        """SHA-256 of the payload."""
        return hashlib.sha256(self.payload).digest()

    def dc_payload(self) -> int:
        """Data credits needed for the payload: one per started 24 bytes, at least one."""
        size = len(self.payload)
        if size <= DC_PAYLOAD_SIZE:
            return 1
        return -(-size // DC_PAYLOAD_SIZE)

    def is_potential_beacon(self) -> bool:
        """Whether the MAC header marks the payload as proprietary."""
        if not self.payload:
            return False
        return self.payload[0] >> 5 == _MTYPE_PROPRIETARY

    def to_pull_resp(self, use_rx2: bool, tx_power: int) -> TxPk | None:
        """A transmit request for the first window, or the second if asked.

        Returns None when the second window is asked for but not known.
        """
        if use_rx2:
            if self.rx2_window is None:
                return None
            window = self.rx2_window
            timestamp, frequency = window.timestamp, window.frequency
            datarate = _parse_datarate(window.datarate)
        else:
            timestamp, frequency = self.timestamp, self.frequency
            datarate = _parse_datarate(self.datarate)
        return TxPk(
            imme=timestamp is None,
            ipol=True,
            modu="LORA",
            codr="4/5",
            datr=datarate,
            freq=float(frequency),
            data=bytes(self.payload),
            powe=tx_power,
            rfch=0,
            tmst="immediate" if timestamp is None else timestamp & 0xFFFFFFFF,
        )