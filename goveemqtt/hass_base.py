"""Shared pieces of Home Assistant MQTT discovery entities."""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterator, Protocol

from goveemqtt.version import govee_version

MODEL = "gv2mqtt"


class HassClient(Protocol):
    """The MQTT client operations that entities need."""

    async def publish(self, topic: str, payload: str) -> None: ...

    async def publish_obj(self, topic: str, obj: Any) -> None: ...


class EntityPublishError(RuntimeError):
    """Publishing or notifying an entity failed."""


@dataclass
class Origin:
    name: str = MODEL
    sw_version: str = field(default_factory=govee_version)
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "sw_version": self.sw_version}
        if self.url is not None:
            out["url"] = self.url
        return out


@dataclass
class DeviceInfo:
    """The device block that groups entities in Home Assistant."""

    name: str = ""
    manufacturer: str = ""
    model: str = ""
    sw_version: str | None = None
    suggested_area: str | None = None
    via_device: str | None = None
    identifiers: list[str] = field(default_factory=list)
    connections: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def this_service(cls) -> "DeviceInfo":
        """The device that represents the bridge service itself."""
        return cls(
            name="Govee to MQTT",
            manufacturer=MODEL,
            model="govee2mqtt",
            sw_version=govee_version(),
            identifiers=[MODEL],
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "manufacturer": self.manufacturer,
            "model": self.model,
        }
        for key in ("sw_version", "suggested_area", "via_device"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.identifiers:
            out["identifiers"] = list(self.identifiers)
        if self.connections:
            out["connections"] = [list(pair) for pair in self.connections]
        return out


@dataclass
class EntityConfig:
    """Fields common to every discovery config."""

    availability_topic: str
    unique_id: str
    name: str | None = None
    device_class: str | None = None
    origin: Origin = field(default_factory=Origin)
    device: DeviceInfo = field(default_factory=DeviceInfo)
    entity_category: str | None = None
    icon: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "availability_topic": self.availability_topic,
            "name": self.name,
        }
        if self.device_class is not None:
            out["device_class"] = self.device_class
        out["origin"] = self.origin.to_dict()
        out["device"] = self.device.to_dict()
        out["unique_id"] = self.unique_id
        if self.entity_category is not None:
            out["entity_category"] = self.entity_category
        if self.icon is not None:
            out["icon"] = self.icon
        return out


class EntityInstance(abc.ABC):
    """An entity that can announce itself and report its state."""

    @abc.abstractmethod
    async def publish_config(self, disco_prefix: str, client: HassClient) -> None:
        """Publish the discovery config."""

    @abc.abstractmethod
    async def notify_state(self, client: HassClient) -> None:
        """Publish the current state."""


async def publish_entity_config(
    integration: str, disco_prefix: str, client: HassClient, config: Any
) -> None:
    """Publish *config* (anything with ``to_dict``) to its discovery topic."""
    payload = config.to_dict()
    topic = f"{disco_prefix}/{integration}/{payload['unique_id']}/config"
    await client.publish_obj(topic, payload)


class EntityList:
    """An ordered collection of entities published together."""

    def __init__(self) -> None:
        self._entities: list[EntityInstance] = []

    def add(self, entity: EntityInstance) -> None:
        self._entities.append(entity)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityInstance]:
        return iter(self._entities)

    async def publish_config(
        self, disco_prefix: str, client: HassClient, delay: float = 0.1
    ) -> None:
        """Publish every config, pausing so Home Assistant keeps up."""
        for entity in self._entities:
            try:
                await entity.publish_config(disco_prefix, client)
            except Exception as err:
                raise EntityPublishError(f"EntityList.publish_config: {err}") from err
            await asyncio.sleep(delay)

    async def notify_state(self, client: HassClient) -> None:
        for entity in self._entities:
            try:
                await entity.notify_state(client)
            except Exception as err:
                raise EntityPublishError(f"EntityList.notify_state: {err}") from err