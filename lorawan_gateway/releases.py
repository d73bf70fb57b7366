"""Release channels, release metadata and fetching releases to update from."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Callable

import semver

GH_PAGE_SIZE = 10

_PACKAGE_VERSION = "1.0.0"


def package_version() -> semver.Version:
    """The version of the running package."""
    return semver.Version.parse(_PACKAGE_VERSION)


class ChannelParseError(ValueError):
    """Raised for a release channel name that is not known."""

    def __init__(self, value: str) -> None:
        super().__init__(f"invalid channel: {value}")
        self.value = value


class DownloadError(Exception):
    """Raised when fetching release data or an asset fails."""


def _alphanumeric_identifiers(version: semver.Version) -> list[str]:
    if not version.prerelease:
        return []
    return [part for part in version.prerelease.split(".") if not part.isdigit()]


class Channel(Enum):
    """An update channel."""

    DEVNET = "devnet"
    TESTNET = "testnet"
    ALPHA = "alpha"
    BETA = "beta"
    RELEASE = "release"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> Channel:
        """Parse a channel name; ``"semver"`` picks the running version's channel."""
        value = text.lower()
        if value == "semver":
            return cls.from_version(package_version())
        try:
            return cls(value)
        except ValueError:
            raise ChannelParseError(value) from None

    @classmethod
    def from_version(cls, version: semver.Version) -> Channel:
        """The channel named by the first known pre-release identifier."""
        known = {
            "alpha": cls.ALPHA,
            "beta": cls.BETA,
            "testnet": cls.TESTNET,
            "devnet": cls.DEVNET,
        }
        for identifier in _alphanumeric_identifiers(version):
            if identifier in known:
                return known[identifier]
        return cls.RELEASE


@dataclass(frozen=True)
class ReleaseAsset:
    """A named, downloadable file belonging to a release."""

    name: str
    download_url: str
    size: int

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ReleaseAsset:
        """Build from a release API asset object."""
        return cls(
            name=data["name"],
            download_url=data["browser_download_url"],
            size=int(data["size"]),
        )

    async def download(self, dest: Path | str) -> None:
        """Download the asset to ``dest``."""
        proc = await asyncio.create_subprocess_exec(
            "curl", "-s", "-L", "-o", str(dest), self.download_url
        )
        try:
            code = await proc.wait()
        except asyncio.CancelledError:
            proc.kill()
            raise
        if code != 0:
            raise DownloadError(f"failed to download asset {self.download_url}: {code}")


@dataclass(frozen=True)
class Release:
    """A versioned release with one or more assets."""

    version: semver.Version
    assets: tuple[ReleaseAsset, ...] = field(default=())

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Release:
        """Build from a release API object; a leading ``v`` on the tag is dropped."""
        tag = data["tag_name"]
        version_str = tag[1:] if tag.startswith("v") else tag
        try:
            version = semver.Version.parse(version_str)
        except ValueError as err:
            raise ValueError(f'invalid release format "{tag}": {err}') from None
        assets = tuple(ReleaseAsset.from_json(a) for a in data.get("assets", []))
        return cls(version=version, assets=assets)

    def in_channel(self, channel: Channel) -> bool:
        """Whether the release belongs to the channel.

        Any non pre-release is a release; other channels need their name in a
        pre-release identifier.
        """
        if channel is Channel.RELEASE:
            return self.version.prerelease is None
        tag = channel.value
        return any(tag in ident for ident in _alphanumeric_identifiers(self.version))

    def asset_for_platform(self, platform: str) -> ReleaseAsset | None:
        """The package asset for the given platform, if present."""
        return self.asset_named(f"helium-gateway-v{self.version}-{platform}")

    def asset_named(self, name: str) -> ReleaseAsset | None:
        """The first asset whose name starts with ``name``."""
        return next((a for a in self.assets if a.name.startswith(name)), None)


async def fetch_releases(url: str, page: int) -> list[Release]:
    """Fetch one page of releases, in the order the API lists them."""
    page_url = f"{url}?per_page={GH_PAGE_SIZE}&page={page}"
    proc = await asyncio.create_subprocess_exec(
        "curl",
        "-s",
        "-L",
        "-H",
        "Accept: application/vnd.github.v3+json",
        page_url,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await proc.communicate()
    except asyncio.CancelledError:
        proc.kill()
        raise
    if proc.returncode != 0:
        message = stderr.decode("utf-8", "replace").strip()
        raise DownloadError(f"failed to fetch {page_url}: {message}")
    return [Release.from_json(item) for item in json.loads(stdout)]


async def all_releases(url: str) -> AsyncIterator[Release]:
    """Yield every release, page by page, until an empty page."""
    page = 1
    while True:
        items = await fetch_releases(url, page)
        if not items:
            return
        for item in items:
            yield item
        page += 1


async def filtered(
    releases: AsyncIterator[Release], predicate: Callable[[Release], bool]
) -> AsyncIterator[Release]:
    """Yield only the releases for which ``predicate`` holds."""
    async for release in releases:
        if predicate(release):
            yield release