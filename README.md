# goveemqtt

Building blocks for bridging Govee lights, humidifiers and similar devices
into Home Assistant over MQTT.

The package provides:

- **Packet codecs** (`goveemqtt.ble`): encode and decode the 20-byte command
  packets Govee devices understand, ending in an XOR checksum. Codecs are
  chosen per SKU, so only the packet types a device supports are used.
- **A persistent response cache** (`goveemqtt.cache`): a SQLite-backed cache
  with soft and hard TTLs, remembering of failures and optional fallback to
  a prior value when a refresh fails.
- **Home Assistant MQTT discovery configs** (`goveemqtt.hass_base`,
  `goveemqtt.hass_simple`, `goveemqtt.hass_controls`): entity, device and
  origin blocks plus cover, scene, button, select, number and switch configs,
  serialised to the dictionaries Home Assistant expects.
- **Work-mode parsing** (`goveemqtt.work_mode`): turns a device's `workMode`
  capability description into named modes, value ranges and presets.
- **Version resolution** (`goveemqtt.version`).

## Installation

```
pip install goveemqtt
```

## Packets

```python
from goveemqtt.ble import (
    Base64HexBytes,
    GenericPacket,
    SetHumidifierMode,
    SetSceneCode,
    decode_for_sku,
    encode_for_sku,
)

data = encode_for_sku("H7160", SetHumidifierMode(mode=1, param=0x20))
# 20 bytes: 0x33 0x05 0x01 0x20, zero padding, then the XOR checksum

assert decode_for_sku("H7160", data) == SetHumidifierMode(mode=1, param=0x20)

# Base64 form
encoded = Base64HexBytes.encode_for_sku("Generic:Light", SetSceneCode(code=123)).base64()
packet = Base64HexBytes.from_base64(encoded).decode_for_sku("Generic:Light")
```

Packet types: `SetHumidifierMode`, `NotifyHumidifierMode`,
`HumidifierAutoMode` (holding a `TargetHumidity`),
`SetHumidifierNightlightParams`, `NotifyHumidifierNightlightParams`
(for SKU `H7160`), and `SetSceneCode`, `SetDevicePower` (for
`Generic:Light`).

Bytes that no codec for the SKU recognises decode to a `GenericPacket`
holding the raw data. Encoding a type the SKU has no codec for raises
`CodecNotFoundError`. `Base64HexBytes.with_bytes` pads arbitrary bytes to a
full packet and appends the checksum; `finish` and `calculate_checksum` do
the same on plain bytes.

## Caching

```python
from datetime import timedelta
from goveemqtt.cache import CacheComputeResult, CacheGetOptions, cache_get

async def fetch_scenes():
    ...
    return CacheComputeResult(value=scenes, ttl=timedelta(minutes=10))

options = CacheGetOptions(
    key="scenes-H6199",
    topic="scenes",
    soft_ttl=timedelta(minutes=5),
    hard_ttl=timedelta(days=1),
    negative_ttl=timedelta(minutes=1),
    allow_stale=True,
)
scenes = await cache_get(options, fetch_scenes)
```

`compute` is awaited only when there is no fresh entry. A plain return value
is kept for `soft_ttl`; a `CacheComputeResult` with a `ttl` uses its own.
Values must be JSON-serialisable. A failure is remembered for
`negative_ttl` and raised as `CachedError`; with `allow_stale` a failed
refresh returns the prior value instead.

The database is `govee2mqtt-cache.sqlite` in the user cache directory, or in
the directory named by the `GOVEE_CACHE_DIR` environment variable.
`purge_cache()` deletes and recreates it; `invalidate_key(topic, key)` drops
one entry. The `Cache` class can also be used directly with `get`, `put`,
`delete` and `close`, or as a context manager.

## Home Assistant discovery configs

```python
from goveemqtt.hass_base import DeviceInfo, EntityConfig, EntityList
from goveemqtt.hass_simple import ButtonConfig

button = ButtonConfig(
    base=EntityConfig(
        availability_topic="gv2mqtt/availability",
        unique_id="global-purge-caches",
        name="Purge Caches",
        device=DeviceInfo.this_service(),
    ),
    command_topic="gv2mqtt/purge-caches",
)

entities = EntityList()
entities.add(button)
await entities.publish_config("homeassistant", client)
await entities.notify_state(client)
```

`client` is any object with async `publish(topic, payload)` and
`publish_obj(topic, obj)` methods (the `HassClient` protocol). Configs are
published to `<prefix>/<integration>/<unique_id>/config`.
`EntityList.publish_config` waits `delay` seconds (0.1 by default) between
entities; failures are raised as `EntityPublishError`.

`goveemqtt.hass_controls` holds `SelectConfig`, `NumberConfig` and
`SwitchConfig`, each with `to_dict` and `publish`; `NumberConfig.notify_state`
raises `MissingStateTopicError` when it has no state topic.

## Work modes

```python
from goveemqtt.work_mode import ParsedWorkMode

cap = {
    "type": "devices.capabilities.work_mode",
    "instance": "workMode",
    "parameters": {
        "dataType": "STRUCT",
        "fields": [
            {"fieldName": "workMode", "dataType": "ENUM",
             "options": [{"name": "Manual", "value": 1}]},
            {"fieldName": "modeValue", "dataType": "ENUM",
             "options": [{"name": "Manual", "range": {"min": 1, "max": 9}}]},
        ],
    },
}
modes = ParsedWorkMode.with_capability(cap)
manual = modes.mode_by_name("Manual")
manual.contiguous_value_range()   # range(1, 10)
manual.should_show_as_preset()    # False
```

A capability without a `workMode` field raises `WorkModeError`.
`adjust_for_device(sku)` applies per-model labels.

## Version

`goveemqtt.version.govee_version()` reports the build tag, taken from the
`GOVEE_CI_TAG` environment variable, a `.tag` file, or the date and hash of
the current git commit, and caches it. `resolve_ci_tag(directory)` does the
same lookup for a given directory without caching.

## What this package does not do

It has no command-line program and no running service. It does not connect
to an MQTT broker: you supply the client. It does not discover or control
devices over the LAN or any cloud API, and it has no sensor, light or
humidifier entities; it builds and publishes the discovery configs listed
above and encodes packets for you to send.

## Running the tests

```
pip install "goveemqtt[test]"
pytest
```