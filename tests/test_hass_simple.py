import pytest

from goveemqtt.hass_base import EntityConfig, Origin
from goveemqtt.hass_simple import ButtonConfig, CoverConfig, SceneConfig


class RecordingClient:
    def __init__(self):
        self.published = []

    async def publish(self, topic, payload):
        self.published.append((topic, payload))

    async def publish_obj(self, topic, obj):
        self.published.append((topic, obj))


def base(unique_id="uid"):
    return EntityConfig(
        availability_topic="avail",
        unique_id=unique_id,
        name="Thing",
        origin=Origin(sw_version="0.1"),
    )


def test_cover_flattens_base():
    cover = CoverConfig(base(), "st", "pos", "setpos", "cmd")
    out = cover.to_dict()
    assert out["unique_id"] == "uid"
    assert out["availability_topic"] == "avail"
    assert (out["state_topic"], out["position_topic"]) == ("st", "pos")
    assert (out["set_position_topic"], out["command_topic"]) == ("setpos", "cmd")
    assert set(base().to_dict()) <= set(out)


def test_button_without_payload_omits_key():
    out = ButtonConfig(base(), "cmd").to_dict()
    assert out["command_topic"] == "cmd"
    assert "payload_press" not in out


def test_button_with_payload():
    out = ButtonConfig(base(), "cmd", payload_press="3").to_dict()
    assert out["payload_press"] == "3"


def test_scene_to_dict():
    out = SceneConfig(base(), "oneclick", "Movie").to_dict()
    assert out["payload_on"] == "Movie"
    assert out["command_topic"] == "oneclick"
    assert out["name"] == "Thing"


@pytest.mark.asyncio
async def test_button_publishes_under_button_integration():
    client = RecordingClient()
    button = ButtonConfig(base("b1"), "cmd")
    await button.publish_config("hass", client)
    assert client.published == [("hass/button/b1/config", button.to_dict())]


@pytest.mark.asyncio
async def test_scene_publishes_under_scene_integration():
    client = RecordingClient()
    scene = SceneConfig(base("s1"), "cmd", "Movie")
    await scene.publish_config("hass", client)
    assert client.published == [("hass/scene/s1/config", scene.to_dict())]


@pytest.mark.asyncio
async def test_stateless_entities_publish_nothing():
    client = RecordingClient()
    await ButtonConfig(base(), "cmd").notify_state(client)
    await SceneConfig(base(), "cmd", "x").notify_state(client)
    assert client.published == []