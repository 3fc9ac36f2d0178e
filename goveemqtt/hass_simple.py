"""Cover, scene and button discovery configs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from goveemqtt.hass_base import (
    EntityConfig,
    EntityInstance,
    HassClient,
    publish_entity_config,
)


@dataclass
class CoverConfig:
    base: EntityConfig
    state_topic: str
    position_topic: str
    set_position_topic: str
    command_topic: str

    def to_dict(self) -> dict[str, Any]:
        out = self.base.to_dict()
        out.update(
            state_topic=self.state_topic,
            position_topic=self.position_topic,
            set_position_topic=self.set_position_topic,
            command_topic=self.command_topic,
        )
        return out


@dataclass
class SceneConfig(EntityInstance):
    base: EntityConfig
    command_topic: str
    payload_on: str

    def to_dict(self) -> dict[str, Any]:
        out = self.base.to_dict()
        out.update(command_topic=self.command_topic, payload_on=self.payload_on)
        return out

    async def publish_config(self, disco_prefix: str, client: HassClient) -> None:
        await publish_entity_config("scene", disco_prefix, client, self)

    async def notify_state(self, client: HassClient) -> None:
        """Scenes have no state."""


@dataclass
class ButtonConfig(EntityInstance):
    base: EntityConfig
    command_topic: str
    payload_press: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = self.base.to_dict()
        out["command_topic"] = self.command_topic
        if self.payload_press is not None:
            out["payload_press"] = self.payload_press
        return out

    async def publish_config(self, disco_prefix: str, client: HassClient) -> None:
        await publish_entity_config("button", disco_prefix, client, self)

    async def notify_state(self, client: HassClient) -> None:
        """Buttons have no state."""