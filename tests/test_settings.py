import logging

import pytest

from lorawan_gateway.region import Region
from lorawan_gateway.releases import Channel
from lorawan_gateway.settings import (
    LogMethod,
    Settings,
    SettingsError,
    StakingMode,
    parse_log_level,
)

DEFAULT_TOML = """
keypair = "/var/data/gateway_key.bin"
region = "US915"
gateways = []

[log]
level = "info"
method = "stdio"
timestamp = false

[update]
enabled = true
interval = 10
channel = "beta"
platform = "klkgw"
uri = "https://releases.example.com/releases"
command = "/usr/bin/install-update"

[cache]
max_packets = 10

[poc]
entropy_uri = "http://entropy.example.com"
ingest_uri = "http://ingest.example.com"
"""


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "default.toml").write_text(DEFAULT_TOML)
    return tmp_path


def test_load_defaults(config_dir):
    settings = Settings.load(config_dir, environ={})
    assert settings.listen == "127.0.0.1:1680"
    assert settings.api == 4467
    assert settings.poc.interval == 6 * 3600
    assert settings.region is Region.US915
    assert settings.onboarding is None
    assert settings.routers is None
    assert settings.gateways == ()


def test_load_sections(config_dir):
    settings = Settings.load(config_dir, environ={})
    assert settings.log.level == logging.INFO
    assert settings.log.method is LogMethod.STDIO
    assert settings.log.timestamp is False
    assert settings.update.channel is Channel.BETA
    assert settings.update.platform == "klkgw"
    assert settings.cache.max_packets == 10
    assert settings.poc.ingest_uri == "http://ingest.example.com"


def test_settings_file_overrides(config_dir):
    (config_dir / "settings.toml").write_text('region = "EU868"\n[log]\nlevel = "debug"\n')
    settings = Settings.load(config_dir, environ={})
    assert settings.region is Region.EU868
    assert settings.log.level == logging.DEBUG
    assert settings.log.method is LogMethod.STDIO


def test_environment_overrides(config_dir):
    environ = {"GW_API": "5000", "GW_LOG_LEVEL": "warn", "OTHER": "x", "GW_REGION": "AU915"}
    settings = Settings.load(config_dir, environ=environ)
    assert settings.api == 5000
    assert settings.log.level == logging.WARNING
    assert settings.region is Region.AU915


def test_environment_bool_override(config_dir):
    settings = Settings.load(config_dir, environ={"GW_LOG_TIMESTAMP": "true"})
    assert settings.log.timestamp is True


def test_missing_default_file(tmp_path):
    with pytest.raises(SettingsError):
        Settings.load(tmp_path, environ={})


def test_missing_required_field(tmp_path):
    (tmp_path / "default.toml").write_text(DEFAULT_TOML.replace('region = "US915"\n', ""))
    with pytest.raises(SettingsError, match="region"):
        Settings.load(tmp_path, environ={})


def test_invalid_region(config_dir):
    with pytest.raises(SettingsError, match="unsupported region"):
        Settings.load(config_dir, environ={"GW_REGION": "MARS1"})


def test_invalid_channel(config_dir):
    with pytest.raises(SettingsError, match="unsupported update channel"):
        Settings.load(config_dir, environ={"GW_UPDATE_CHANNEL": "Nightly"})


def test_api_out_of_range(config_dir):
    with pytest.raises(SettingsError):
        Settings.load(config_dir, environ={"GW_API": "70000"})


def test_invalid_gateway_pubkey(tmp_path):
    text = DEFAULT_TOML.replace(
        "gateways = []",
        'gateways = [{ uri = "http://gw.example.com:8080", pubkey = "0OIl" }]',
    )
    (tmp_path / "default.toml").write_text(text)
    with pytest.raises(SettingsError, match="pubkey"):
        Settings.load(tmp_path, environ={})


@pytest.mark.parametrize(
    "text,level",
    [
        ("info", logging.INFO),
        ("DEBUG", logging.DEBUG),
        ("warn", logging.WARNING),
        ("crit", logging.CRITICAL),
        ("error", logging.ERROR),
    ],
)
def test_parse_log_level(text, level):
    assert parse_log_level(text) == level


def test_parse_log_level_invalid():
    with pytest.raises(SettingsError, match='invalid log level "loud"'):
        parse_log_level("loud")


def test_log_method_parse():
    assert LogMethod.parse("SysLog") is LogMethod.SYSLOG
    with pytest.raises(SettingsError, match="unsupported log method"):
        LogMethod.parse("file")


@pytest.mark.parametrize("mode", list(StakingMode))
def test_staking_mode_round_trip(mode):
    assert StakingMode.parse(str(mode)) is mode


def test_staking_mode_names():
    assert str(StakingMode.DATA_ONLY) == "dataonly"
    assert StakingMode.parse("FULL") is StakingMode.FULL
    with pytest.raises(SettingsError, match="invalid staking mode"):
        StakingMode.parse("heavy")