"""Routing tables: which router URIs receive which devices' packets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from lorawan_gateway.filter import DevAddrFilter, Eui, EuiFilter

_log = logging.getLogger(__name__)

_PUBLIC_KEY_LEN = 33
_KEY_TYPES = (0, 1)  # ecc compact, ed25519


@dataclass(frozen=True)
class KeyedUri:
    """A service URI together with the binary public key it signs with."""

    uri: str
    pubkey: bytes


@dataclass(frozen=True)
class RoutingInformation:
    """What an uplink is routed by: an EUI pair or a device address."""

    eui: Eui | None = None
    devaddr: int | None = None


@dataclass(frozen=True)
class RoutingAddress:
    """A raw router address entry: URI bytes and public key bytes."""

    uri: bytes
    pub_key: bytes


@dataclass(frozen=True)
class RoutingProto:
    """A raw routing entry for one OUI as delivered by a gateway service."""

    oui: int
    addresses: tuple[RoutingAddress, ...] = ()
    filters: tuple[bytes, ...] = ()
    subnets: tuple[bytes, ...] = ()


def _parse_uri(text: str) -> str:
    if not text or any(ch.isspace() or ord(ch) < 0x20 for ch in text):
        raise ValueError("invalid uri character")
    urlsplit(text)
    return text


def _parse_public_key(data: bytes) -> bytes:
    data = bytes(data)
    if len(data) != _PUBLIC_KEY_LEN:
        raise ValueError(f"invalid public key length {len(data)}")
    if data[0] & 0x0F not in _KEY_TYPES:
        raise ValueError(f"unsupported key type {data[0] & 0x0F}")
    return data


@dataclass(frozen=True)
class Routing:
    """Router URIs and the filters that select packets for one OUI."""

    oui: int
    uris: tuple[KeyedUri, ...] = ()
    filters: tuple[EuiFilter, ...] = field(default=())
    subnets: tuple[DevAddrFilter, ...] = field(default=())

    def contains_uri(self, uri: KeyedUri) -> bool:
        """Whether the routing lists the given router."""
        return uri in self.uris

    def matches_routing_info(self, routing_info: RoutingInformation | None) -> bool:
        """Whether a packet with this routing information belongs here."""
        if routing_info is None:
            return False
        if routing_info.eui is not None:
            return any(f.contains(routing_info.eui) for f in self.filters)
        if routing_info.devaddr is not None:
            return any(s.contains(routing_info.devaddr) for s in self.subnets)
        return False

    @classmethod
    def from_proto(cls, proto: RoutingProto) -> Routing:
        """Decode filters and addresses; invalid addresses are logged and skipped."""
        filters = tuple(EuiFilter.from_bin(f) for f in proto.filters)
        subnets = tuple(DevAddrFilter.from_bin(s) for s in proto.subnets)
        uris = []
        for address in proto.addresses:
            if not address.uri:
                continue
            uri_str = bytes(address.uri).decode("utf-8", errors="replace")
            try:
                uri = _parse_uri(uri_str)
            except ValueError as err:
                _log.warning('ignoring invalid uri: "%s": %s (oui %s)', uri_str, err, proto.oui)
                continue
            try:
                pubkey = _parse_public_key(address.pub_key)
            except ValueError as err:
                _log.warning("ignoring public key: %s (oui %s)", err, proto.oui)
                continue
            uris.append(KeyedUri(uri=uri, pubkey=pubkey))
        return cls(oui=proto.oui, uris=tuple(uris), filters=filters, subnets=subnets)