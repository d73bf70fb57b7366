"""Service configuration loaded from TOML files and environment overrides."""

from __future__ import annotations

import hashlib
import logging
import os
import tomllib
from dataclasses import dataclass
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlsplit

from lorawan_gateway.region import Region, RegionError
from lorawan_gateway.releases import Channel, ChannelParseError
from lorawan_gateway.routing import KeyedUri

TRACE = 5
DEFAULT_LISTEN = "127.0.0.1:1680"
DEFAULT_API = 4467
DEFAULT_POC_INTERVAL = 6 * 3600  # every 6 hours
ENV_PREFIX = "GW_"

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF
_U64_MAX = 0xFFFFFFFFFFFFFFFF

_LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "crit": logging.CRITICAL,
    "error": logging.ERROR,
    "erro": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "debg": logging.DEBUG,
    "trace": TRACE,
    "trce": TRACE,
}

_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}

_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


class SettingsError(Exception):
    """Raised when the configuration is missing or invalid."""


def parse_log_level(text: str) -> int:
    """Parse a log level name into a ``logging`` level number."""
    try:
        return _LOG_LEVELS[text.lower()]
    except KeyError:
        raise SettingsError(f'invalid log level "{text}"') from None


class LogMethod(Enum):
    """Where log output goes."""

    STDIO = "stdio"
    SYSLOG = "syslog"

    @classmethod
    def parse(cls, text: str) -> LogMethod:
        """Parse a log method name, ignoring case."""
        value = text.lower()
        try:
            return cls(value)
        except ValueError:
            raise SettingsError(f'unsupported log method: "{value}"') from None


class StakingMode(IntEnum):
    """How a gateway was staked when added to the chain."""

    DATA_ONLY = 0
    LIGHT = 1
    FULL = 2

    def __str__(self) -> str:
        return {
            StakingMode.DATA_ONLY: "dataonly",
            StakingMode.LIGHT: "light",
            StakingMode.FULL: "full",
        }[self]

    @classmethod
    def parse(cls, text: str) -> StakingMode:
        """Parse a staking mode name, ignoring case."""
        modes = {"light": cls.LIGHT, "full": cls.FULL, "dataonly": cls.DATA_ONLY}
        try:
            return modes[text.lower()]
        except KeyError:
            raise SettingsError(f"invalid staking mode {text}") from None


@dataclass(frozen=True)
class LogSettings:
    """Log level, method and whether to show timestamps."""

    level: int
    method: LogMethod
    timestamp: bool


@dataclass(frozen=True)
class UpdateSettings:
    """Auto-update configuration."""

    enabled: bool
    interval: int
    channel: Channel
    platform: str
    uri: str
    command: str


@dataclass(frozen=True)
class CacheSettings:
    """Maximum number of packets queued per router client."""

    max_packets: int


@dataclass(frozen=True)
class PocSettings:
    """Proof-of-coverage service locations and beacon interval in seconds."""

    entropy_uri: str
    ingest_uri: str
    interval: int = DEFAULT_POC_INTERVAL


@dataclass(frozen=True)
class Settings:
    """All configuration the service needs to operate."""

    listen: str
    api: int
    keypair: str
    onboarding: str | None
    region: Region
    log: LogSettings
    update: UpdateSettings
    routers: tuple[KeyedUri, ...] | None
    gateways: tuple[KeyedUri, ...]
    cache: CacheSettings
    poc: PocSettings

    @classmethod
    def load(cls, path: Path | str, environ: Mapping[str, str] | None = None) -> Settings:
        """Load ``default.toml`` from ``path``, merge an optional ``settings.toml``,
        then apply ``GW_``-prefixed environment overrides (``_`` separates levels).
        """
        path = Path(path)
        data = _read_toml(path / "default.toml", required=True)
        _deep_merge(data, _read_toml(path / "settings.toml", required=False))
        _apply_environment(data, os.environ if environ is None else environ)
        return cls._from_mapping(data)

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        log = _table(data, "log")
        update = _table(data, "update")
        cache = _table(data, "cache")
        poc = _table(data, "poc")

        region_text = _as_str(_field(data, "region"), "region")
        try:
            region = Region.parse(region_text)
        except RegionError as err:
            raise SettingsError(str(err)) from None

        channel_text = _as_str(_field(update, "channel"), "channel")
        try:
            channel = Channel.parse(channel_text)
        except ChannelParseError:
            raise SettingsError(
                f'unsupported update channel: "{channel_text.lower()}"'
            ) from None

        onboarding = data.get("onboarding")
        routers = data.get("routers")
        return cls(
            listen=_as_str(data.get("listen", DEFAULT_LISTEN), "listen"),
            api=_as_int(data.get("api", DEFAULT_API), "api", _U16_MAX),
            keypair=_as_str(_field(data, "keypair"), "keypair"),
            onboarding=None if onboarding is None else _as_str(onboarding, "onboarding"),
            region=region,
            log=LogSettings(
                level=parse_log_level(_as_str(_field(log, "level"), "level")),
                method=LogMethod.parse(_as_str(_field(log, "method"), "method")),
                timestamp=_as_bool(_field(log, "timestamp"), "timestamp"),
            ),
            update=UpdateSettings(
                enabled=_as_bool(_field(update, "enabled"), "enabled"),
                interval=_as_int(_field(update, "interval"), "interval", _U32_MAX),
                channel=channel,
                platform=_as_str(_field(update, "platform"), "platform"),
                uri=_as_uri(_field(update, "uri"), "uri"),
                command=_as_str(_field(update, "command"), "command"),
            ),
            routers=None if routers is None else _keyed_uris(routers, "routers"),
            gateways=_keyed_uris(_field(data, "gateways"), "gateways"),
            cache=CacheSettings(
                max_packets=_as_int(_field(cache, "max_packets"), "max_packets", _U16_MAX)
            ),
            poc=PocSettings(
                entropy_uri=_as_uri(_field(poc, "entropy_uri"), "entropy_uri"),
                ingest_uri=_as_uri(_field(poc, "ingest_uri"), "ingest_uri"),
                interval=_as_int(
                    poc.get("interval", DEFAULT_POC_INTERVAL), "interval", _U64_MAX
                ),
            ),
        )


def _read_toml(file: Path, *, required: bool) -> dict[str, Any]:
    try:
        with file.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        if required:
            raise SettingsError(f'configuration file "{file}" not found') from None
        return {}
    except tomllib.TOMLDecodeError as err:
        raise SettingsError(f"{file}: {err}") from None


def _deep_merge(target: dict[str, Any], overlay: Mapping[str, Any]) -> None:
    for key, value in overlay.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            target[key] = value


def _apply_environment(data: dict[str, Any], environ: Mapping[str, str]) -> None:
    for name, value in environ.items():
        if not name.upper().startswith(ENV_PREFIX):
            continue
        path = name[len(ENV_PREFIX):].lower().split("_")
        if not all(path):
            continue
        node = data
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value


def _field(table: Mapping[str, Any], key: str) -> Any:
    try:
        return table[key]
    except KeyError:
        raise SettingsError(f"missing field `{key}`") from None


def _table(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = _field(data, key)
    if not isinstance(value, Mapping):
        raise SettingsError(f"invalid type for `{key}`: expected a table")
    return value


def _as_str(value: Any, name: str) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise SettingsError(f"invalid type for `{name}`: expected a string")


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise SettingsError(f"invalid value for `{name}`: expected a boolean")


def _as_int(value: Any, name: str, maximum: int) -> int:
    if isinstance(value, bool):
        raise SettingsError(f"invalid type for `{name}`: expected an integer")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise SettingsError(f"invalid value for `{name}`: expected an integer") from None
    if not isinstance(value, int):
        raise SettingsError(f"invalid type for `{name}`: expected an integer")
    if not 0 <= value <= maximum:
        raise SettingsError(f"invalid value for `{name}`: {value} out of range")
    return value


def _as_uri(value: Any, name: str) -> str:
    text = _as_str(value, name)
    if not text or any(ch.isspace() or ord(ch) < 0x20 for ch in text):
        raise SettingsError(f"invalid uri for `{name}`: {text!r}")
    try:
        urlsplit(text)
    except ValueError as err:
        raise SettingsError(f"invalid uri for `{name}`: {err}") from None
    return text


def _decode_public_key(text: str) -> bytes:
    number = 0
    for ch in text:
        index = _B58_ALPHABET.find(ch)
        if index < 0:
            raise ValueError(f"invalid base58 character {ch!r}")
        number = number * 58 + index
    leading = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    raw = b"\x00" * leading + body
    if len(raw) < 6:
        raise ValueError("public key too short")
    payload, checksum = raw[:-4], raw[-4:]
    if hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:4] != checksum:
        raise ValueError("public key checksum mismatch")
    return payload[1:]


def _keyed_uris(value: Any, name: str) -> tuple[KeyedUri, ...]:
    if not isinstance(value, list):
        raise SettingsError(f"invalid type for `{name}`: expected a list")
    result = []
    for entry in value:
        if not isinstance(entry, Mapping):
            raise SettingsError(f"invalid entry in `{name}`: expected a table")
        uri = _as_uri(_field(entry, "uri"), "uri")
        pubkey_text = _as_str(_field(entry, "pubkey"), "pubkey")
        try:
            pubkey = _decode_public_key(pubkey_text)
        except ValueError as err:
            raise SettingsError(f"invalid pubkey in `{name}`: {err}") from None
        result.append(KeyedUri(uri=uri, pubkey=pubkey))
    return tuple(result)