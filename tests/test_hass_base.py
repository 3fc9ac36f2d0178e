import pytest

from goveemqtt.hass_base import (
    DeviceInfo,
    EntityConfig,
    EntityInstance,
    EntityList,
    EntityPublishError,
    Origin,
    publish_entity_config,
)


class RecordingClient:
    def __init__(self):
        self.published = []

    async def publish(self, topic, payload):
        self.published.append((topic, payload))

    async def publish_obj(self, topic, obj):
        self.published.append((topic, obj))


class FakeEntity(EntityInstance):
    def __init__(self, label, fail=False):
        self.label = label
        self.fail = fail

    async def publish_config(self, disco_prefix, client):
        if self.fail:
            raise RuntimeError("nope")
        await client.publish(f"{disco_prefix}/{self.label}", "config")

    async def notify_state(self, client):
        if self.fail:
            raise RuntimeError("nope")
        await client.publish(self.label, "state")


def make_config(**kwargs):
    return EntityConfig(
        availability_topic="avail",
        unique_id="uid-1",
        origin=Origin(sw_version="1.2.3"),
        **kwargs,
    )


def test_origin_defaults():
    origin = Origin(sw_version="1.2.3")
    assert origin.to_dict() == {"name": "gv2mqtt", "sw_version": "1.2.3"}


def test_this_service_device():
    info = DeviceInfo.this_service().to_dict()
    assert info["name"] == "Govee to MQTT"
    assert info["identifiers"] == ["gv2mqtt"]
    assert "via_device" not in info


def test_device_info_omits_empty():
    info = DeviceInfo(name="Lamp", manufacturer="Govee", model="H6000")
    assert info.to_dict() == {"name": "Lamp", "manufacturer": "Govee", "model": "H6000"}


def test_device_info_connections_serialized_as_lists():
    info = DeviceInfo(connections=[("mac", "00:00:00:00:00:01")])
    assert info.to_dict()["connections"] == [["mac", "00:00:00:00:00:01"]]


def test_entity_config_skips_optional_fields_but_keeps_name():
    out = make_config().to_dict()
    assert out["name"] is None
    assert out["unique_id"] == "uid-1"
    for key in ("device_class", "entity_category", "icon"):
        assert key not in out


def test_entity_config_includes_set_fields():
    out = make_config(name="n", device_class="temperature", icon="mdi:x").to_dict()
    assert out["device_class"] == "temperature"
    assert out["icon"] == "mdi:x"
    assert list(out)[:2] == ["availability_topic", "name"]


@pytest.mark.asyncio
async def test_publish_entity_config_topic():
    client = RecordingClient()
    config = make_config()
    await publish_entity_config("sensor", "hass", client, config)
    assert client.published == [("hass/sensor/uid-1/config", config.to_dict())]


@pytest.mark.asyncio
async def test_entity_list_publishes_in_order():
    entities = EntityList()
    entities.add(FakeEntity("a"))
    entities.add(FakeEntity("b"))
    assert len(entities) == 2
    client = RecordingClient()
    await entities.publish_config("pfx", client, delay=0)
    await entities.notify_state(client)
    assert [t for t, _ in client.published] == ["pfx/a", "pfx/b", "a", "b"]


@pytest.mark.asyncio
async def test_entity_list_wraps_errors():
    entities = EntityList()
    entities.add(FakeEntity("a", fail=True))
    with pytest.raises(EntityPublishError) as info:
        await entities.publish_config("pfx", RecordingClient(), delay=0)
    assert isinstance(info.value.__cause__, RuntimeError)
    with pytest.raises(EntityPublishError):
        await entities.notify_state(RecordingClient())


def test_entity_instance_is_abstract():
    with pytest.raises(TypeError):
        EntityInstance()