# lorawan_gateway

Pieces of a LoRaWAN gateway service. Each module can be used on its own:

- `lorawan_gateway.packet`: `Packet`, a received LoRa packet with its radio
  metadata. It gives the SHA-256 `hash()` of the payload and the data-credit
  cost `dc_payload()`, which is one credit for each started 24 bytes. It
  detects proprietary frames with `is_potential_beacon()`. `to_pull_resp()`
  turns a packet into a downlink transmit request (`TxPk`) for the first or
  the second (`Rx2Window`) receive window.
- `lorawan_gateway.filter`: `EuiFilter` (an xor16 filter over hashed
  `Eui` pairs) and `DevAddrFilter` (a device address range). Both are read
  from their binary form with `from_bin()`. The module also has `xxh64()`.
- `lorawan_gateway.routing`: `Routing` holds the router URIs (`KeyedUri`)
  and filters of one OUI. `matches_routing_info()` matches a packet's
  `RoutingInformation` against them. `Routing.from_proto()` decodes a raw
  `RoutingProto`. Invalid addresses are logged and skipped.
- `lorawan_gateway.store`: `RouterStore`, a bounded queue of
  `QueuedPacket`s that drops the oldest packet when full. It also drops
  packets by age with `gc_waiting_packets()`.
- `lorawan_gateway.region`: the `Region` enum and `RegionParams`. For
  `RegionParams`, `max_eirp()` gives the maximum EIRP and `tx_power()`
  gives the maximum EIRP less the antenna gain.
- `lorawan_gateway.txn_fee`: `TxnFeeConfig` is built from chain
  `ConfigValue`s and computes transaction and staking fees.
- `lorawan_gateway.settings`: `Settings.load()` reads `default.toml`, then
  an optional `settings.toml`, then `GW_`-prefixed environment overrides.
  In an override name, `_` separates levels, so `GW_LOG_LEVEL` sets
  `log.level`. The module also has `LogMethod`, `StakingMode` and
  `parse_log_level()`.
- `lorawan_gateway.releases`: update channels (`Channel`), and `Release`
  and `ReleaseAsset` built from release API JSON. It pages through
  releases with `all_releases()` and narrows them with `filtered()`.
- `lorawan_gateway.updater`: `Updater` finds the first release that meets
  three conditions:
  - it is in its channel;
  - it is newer than `package_version()`;
  - it has an asset for its platform.

  It then downloads that release and runs the configured install command
  with the downloaded file's path as its argument.
- `lorawan_gateway.sync`: asyncio message channels (`message_channel()`)
  and one-shot response channels (`response_channel()`).
- `lorawan_gateway.version`: `GatewayVersion` decodes a packed version
  number.
- `lorawan_gateway.b64`: `to_b64()` (standard, padded) and `to_b64url()`
  (URL-safe, unpadded).

## Install

```
pip install .
pip install ".[test]"   # with the test dependencies
```

## Examples

Decoding a gateway version number:

```python
from lorawan_gateway.version import GatewayVersion

str(GatewayVersion.from_int(10110000))  # "1.11.0"
```

Checking a device address against a subnet filter:

```python
from lorawan_gateway.filter import DevAddrFilter

subnet = DevAddrFilter.from_bin(bytes([0, 2, 0, 127, 255, 0]))
subnet.contains(1024)  # True
```

Computing fees from the default fee configuration:

```python
from lorawan_gateway.settings import StakingMode
from lorawan_gateway.txn_fee import TxnFeeConfig

config = TxnFeeConfig.from_values([])
config.get_txn_fee(100)                        # 5 * 5000
config.get_staking_fee(StakingMode.DATA_ONLY)  # 1000000
```

Looking up a region:

```python
from lorawan_gateway.region import Region

Region.parse("EU868")  # Region.EU868
Region.from_i32(0)     # Region.US915
```

Encoding bytes for logs and URLs:

```python
from lorawan_gateway.b64 import to_b64, to_b64url

to_b64(b"\xfb\xff")     # "+/8="
to_b64url(b"\xfb\xff")  # "-_8"
```

## Errors

Errors are raised as exceptions. Some examples:

- `RegionError` for an unknown region or missing region parameters.
- `PacketError` for a packet whose datarate cannot be converted.
- `ChannelParseError` for an unknown update channel.
- `SettingsError` for missing or invalid configuration.
- `TxnFeeError` for a chain variable of the wrong type.
- `DownloadError` and `InstallError` for a failed update.
- `ChannelClosed` when the other side of a channel is gone.

## What this package does not do

This is a library, not a running service. It has no command to start. It
does not do any of the following:

- listen for a UDP packet forwarder;
- talk to gateway, router or proof-of-coverage services over the network;
- sign or verify messages;
- manage keypairs.

Settings store the keypair location only as a string.

Fetching releases and downloading assets runs the `curl` program, so
`curl` must be on the `PATH` for the updater to work.