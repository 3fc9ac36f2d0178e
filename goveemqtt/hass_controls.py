"""Select, number and switch discovery configs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goveemqtt.hass_base import EntityConfig, HassClient, publish_entity_config


class MissingStateTopicError(ValueError):
    """An entity was asked to report state but has no state topic."""


@dataclass
class SelectConfig:
    """A drop-down of options; Home Assistant publishes the chosen one."""

    base: EntityConfig
    command_topic: str
    state_topic: str
    options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out = self.base.to_dict()
        out.update(
            command_topic=self.command_topic,
            options=list(self.options),
            state_topic=self.state_topic,
        )
        return out

    async def publish(self, disco_prefix: str, client: HassClient) -> None:
        await publish_entity_config("select", disco_prefix, client, self)


@dataclass
class NumberConfig:
    """A numeric input, shown as a slider or box in Home Assistant."""

    base: EntityConfig
    command_topic: str
    state_topic: str | None = None
    min: float | None = None
    max: float | None = None
    step: float = 1.0
    unit_of_measurement: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = self.base.to_dict()
        out["command_topic"] = self.command_topic
        if self.state_topic is not None:
            out["state_topic"] = self.state_topic
        if self.min is not None:
            out["min"] = float(self.min)
        if self.max is not None:
            out["max"] = float(self.max)
        out["step"] = float(self.step)
        if self.unit_of_measurement is not None:
            out["unit_of_measurement"] = self.unit_of_measurement
        return out

    async def publish(self, disco_prefix: str, client: HassClient) -> None:
        await publish_entity_config("number", disco_prefix, client, self)

    async def notify_state(self, client: HassClient, value: str) -> None:
        """Publish *value* to the state topic."""
        if self.state_topic is None:
            raise MissingStateTopicError("number has no state_topic")
        await client.publish(self.state_topic, value)


@dataclass
class SwitchConfig:
    """An on/off switch."""

    base: EntityConfig
    command_topic: str
    state_topic: str

    def to_dict(self) -> dict[str, Any]:
        out = self.base.to_dict()
        out.update(command_topic=self.command_topic, state_topic=self.state_topic)
        return out

    async def publish(self, disco_prefix: str, client: HassClient) -> None:
        await publish_entity_config("switch", disco_prefix, client, self)