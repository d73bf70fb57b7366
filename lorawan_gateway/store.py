"""Bounded queue of uplink packets waiting to be sent to a router."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Any


@dataclass
class QueuedPacket:
    """A packet with the monotonic time it was received."""

    received: float
    packet: Any

    def hold_time(self) -> float:
        """Seconds since the packet was received."""
        return time.monotonic() - self.received

    def __getattr__(self, name: str) -> Any:
        if name == "packet":
            raise AttributeError(name)
        return getattr(self.packet, name)


class RouterStore:
    """Keeps at most ``max_packets`` waiting packets, dropping the oldest."""

    def __init__(self, max_packets: int) -> None:
        self.max_packets = max_packets
        self._waiting: deque[QueuedPacket] = deque()

    def store_waiting_packet(self, packet: Any, received: float | None = None) -> None:
        """Queue a packet received at the given monotonic time (default: now)."""
        if received is None:
            received = time.monotonic()
        self._waiting.append(QueuedPacket(received=received, packet=packet))
        if len(self._waiting) > self.max_packets:
            self._waiting.popleft()

    def pop_waiting_packet(self) -> QueuedPacket | None:
        """Remove and return the oldest waiting packet, if any."""
        return self._waiting.popleft() if self._waiting else None

    def __len__(self) -> int:
        return len(self._waiting)

    def gc_waiting_packets(self, duration: float) -> int:
        """Drop packets held longer than ``duration`` seconds; return how many."""
        before = len(self._waiting)
        self._waiting = deque(p for p in self._waiting if p.hold_time() <= duration)
        return before - len(self._waiting)