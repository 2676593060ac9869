"""Home Assistant side of the bridge: devices, preferences and publishing."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from homeassistant.components import mqtt
from homeassistant.core import HomeAssistant
from homeassistant.helpers.json import json_dumps

from .capability import DeviceCapability
from .const import (
    AVAILABILITY_TOPIC,
    CAPABILITY_TEMPERATURE_SETTING,
    DEFAULT_DISCOVERY_PREFIX,
    PAYLOAD_ONLINE,
)
from .entity import (
    EntityDescription,
    EntityList,
    TargetTemperatureEntity,
    topic_safe_id,
)
from .errors import SchemaError
from .temperature import TemperatureScale, TemperatureValue

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Device:
    """A vendor device known to the bridge."""

    id: str
    name: str
    sku: str
    room: str | None = None
    capabilities: tuple[DeviceCapability, ...] = field(default=(), compare=False)


class StateHandle(Protocol):
    """Device and preference lookups used by entities and command handlers."""

    async def async_get_temperature_scale(self) -> TemperatureScale: ...

    async def async_resolve_device(self, device_id: str) -> Device | None: ...

    async def async_set_target_temperature(
        self, device: Device, instance: str, value: TemperatureValue
    ) -> None: ...


class Publisher(Protocol):
    """Destination of entity discovery configs."""

    async def async_publish_entity(self, description: EntityDescription) -> None: ...


SetTargetTemperature = Callable[[Device, str, TemperatureValue], Awaitable[None]]


class BridgeState:
    """In-memory device registry backed by Home Assistant's configuration."""

    def __init__(
        self,
        hass: HomeAssistant,
        set_target_temperature: SetTargetTemperature | None = None,
    ) -> None:
        self.hass = hass
        self._set_target_temperature = set_target_temperature
        self._devices: dict[str, Device] = {}
        self._devices_by_safe_id: dict[str, Device] = {}
        self._entities: dict[str, EntityList] = {}

    @property
    def devices(self) -> list[Device]:
        return list(self._devices.values())

    def entities_for(self, device_id: str) -> EntityList:
        return self._entities.get(device_id, EntityList())

    def set_controller(self, set_target_temperature: SetTargetTemperature) -> None:
        """Install the callable that talks to the vendor API."""
        self._set_target_temperature = set_target_temperature

    async def async_get_temperature_scale(self) -> TemperatureScale:
        """Return the temperature scale of Home Assistant's unit system."""
        return TemperatureScale.from_unit_of_measurement(
            self.hass.config.units.temperature_unit
        )

    async def async_resolve_device(self, device_id: str) -> Device | None:
        """Find a device by the topic-safe id carried in command topics."""
        return self._devices_by_safe_id.get(device_id)

    async def async_set_target_temperature(
        self, device: Device, instance: str, value: TemperatureValue
    ) -> None:
        if self._set_target_temperature is None:
            raise RuntimeError("no device controller is registered")
        _LOGGER.info("Setting %s of %s to %s", instance, device.id, value)
        await self._set_target_temperature(device, instance, value)

    async def async_add_device(self, device: Device, publisher: Publisher) -> EntityList:
        """Register *device* and publish an entity per temperature capability.

        Capabilities whose schema cannot be understood are logged and skipped.
        """
        self._devices[device.id] = device
        self._devices_by_safe_id[topic_safe_id(device)] = device
        entities = EntityList()
        for capability in device.capabilities:
            if capability.kind != CAPABILITY_TEMPERATURE_SETTING:
                continue
            try:
                entity = await TargetTemperatureEntity.async_build(
                    device, self, capability
                )
            except SchemaError as err:
                _LOGGER.warning(
                    "Skipping %s of %s (%s): %s",
                    capability.instance,
                    device.name,
                    device.id,
                    err,
                )
                continue
            entities.add(entity)

        self._entities[device.id] = entities
        await entities.async_publish_config(publisher)
        await entities.async_notify_state(publisher)
        return entities


class MqttPublisher:
    """Publish discovery configs through Home Assistant's MQTT integration."""

    def __init__(
        self, hass: HomeAssistant, discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX
    ) -> None:
        self.hass = hass
        self.discovery_prefix = discovery_prefix

    def config_topic(self, description: EntityDescription) -> str:
        return (
            f"{self.discovery_prefix}/{description.component}"
            f"/{description.unique_id}/config"
        )

    async def async_publish_entity(self, description: EntityDescription) -> None:
        topic = self.config_topic(description)
        _LOGGER.debug("Publishing discovery config to %s", topic)
        await mqtt.async_publish(
            self.hass,
            topic,
            json_dumps(description.as_discovery_payload()),
            qos=0,
            retain=True,
        )

    async def async_publish_availability(self) -> None:
        await mqtt.async_publish(
            self.hass, AVAILABILITY_TOPIC, PAYLOAD_ONLINE, qos=0, retain=True
        )
