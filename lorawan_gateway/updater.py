"""Periodic check for, download and install of newer releases."""

from __future__ import annotations

import asyncio
import json
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

from lorawan_gateway.releases import (
    Channel,
    DownloadError,
    Release,
    all_releases,
    filtered,
    package_version,
)
from lorawan_gateway.settings import Settings

_log = logging.getLogger(__name__)


class InstallError(Exception):
    """Raised when the install command fails."""


@dataclass(frozen=True)
class Updater:
    """Looks for newer releases in a channel and installs them."""

    enabled: bool
    uri: str
    channel: Channel
    platform: str
    interval: float
    install_command: str

    @classmethod
    def from_settings(cls, settings: Settings) -> Updater:
        """Build from the update section of the settings."""
        update = settings.update
        return cls(
            enabled=update.enabled,
            uri=update.uri,
            channel=update.channel,
            platform=update.platform,
            interval=update.interval * 60,
            install_command=update.command,
        )

    def download_path(self, package_name: str) -> Path:
        """A temporary location to download a package into."""
        return Path(tempfile.gettempdir()) / package_name

    async def install(self, download_path: Path | str) -> None:
        """Run the install command with the downloaded package as its argument."""
        proc = await asyncio.create_subprocess_exec(
            self.install_command,
            str(download_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await proc.communicate()
        if proc.returncode == 0:
            return
        output = stderr.decode("utf-8", "replace")
        _log.error("failed to install update %s", output)
        raise InstallError(output)

    async def find_update(self) -> Release | None:
        """The first release in the channel newer than this package with an
        asset for the platform, or None.
        """
        current = package_version()

        def wanted(release: Release) -> bool:
            return (
                release.in_channel(self.channel)
                and release.version > current
                and release.asset_for_platform(self.platform) is not None
            )

        releases = filtered(all_releases(self.uri), wanted)
        try:
            return await anext(releases, None)
        finally:
            await releases.aclose()

    async def run(self, shutdown: asyncio.Event) -> None:
        """Check for updates every interval until shutdown or an install."""
        if not self.enabled:
            _log.info("disabling")
            return
        _log.info("starting")
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            if shutdown.is_set():
                _log.info("shutting down")
                return
            delay = max(0.0, next_tick - loop.time())
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
            else:
                _log.info("shutting down")
                return
            next_tick += self.interval

            try:
                release = await self.find_update()
            except (DownloadError, OSError, ValueError, KeyError, json.JSONDecodeError) as err:
                _log.warning("failed to fetch releases: %r", err)
                continue
            if release is None:
                _log.info("no update found")
                continue
            asset = release.asset_for_platform(self.platform)
            if asset is None:
                raise InstallError(f"no asset for platform {self.platform}")
            _log.info("downloading %s", asset.name)
            download_path = self.download_path(asset.name)
            await asset.download(download_path)
            _log.info("installing %s", asset.name)
            await self.install(download_path)
            return