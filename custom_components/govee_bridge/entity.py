"""MQTT discovery entities published by the bridge."""

from __future__ import annotations

import abc
import logging
import math
import string
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .capability import DeviceCapability, parse_temperature_constraints
from .const import (
    AVAILABILITY_TOPIC,
    ICON_THERMOMETER,
    MANUFACTURER,
    ORIGIN_NAME,
    SET_TEMPERATURE_COMMAND,
    TARGET_TEMPERATURE_NAME,
    TOPIC_PREFIX,
    VERSION,
)
from .errors import ParseError
from .temperature import DEVICE_CLASS_TEMPERATURE

if TYPE_CHECKING:
    from .bridge import Device, Publisher, StateHandle

_LOGGER = logging.getLogger(__name__)

_TOPIC_SAFE_CHARS = frozenset(string.ascii_letters + string.digits)
_ESCAPE = "_"


# ── Topic-safe identifiers ────────────────────────────────────────────


def topic_safe_string(value: str) -> str:
    """Encode *value* so it can be used as a single MQTT topic segment.

    ASCII letters and digits are kept; every other character is replaced by
    ``_`` followed by the lower-case hex of each of its UTF-8 bytes. The
    mapping is injective, so distinct inputs never share an encoding, and the
    output never contains ``-``, ``/``, ``+`` or ``#``.
    """
    parts: list[str] = []
    for char in value:
        if char in _TOPIC_SAFE_CHARS:
            parts.append(char)
        else:
            parts.extend(f"{_ESCAPE}{byte:02x}" for byte in char.encode("utf-8"))
    return "".join(parts)


def decode_topic_safe_string(value: str) -> str:
    """Invert topic_safe_string."""
    data = bytearray()
    idx = 0
    while idx < len(value):
        char = value[idx]
        if char == _ESCAPE:
            hex_digits = value[idx + 1 : idx + 3]
            if len(hex_digits) != 2 or not all(
                c in string.hexdigits for c in hex_digits
            ):
                raise ParseError("malformed topic segment", value)
            data.append(int(hex_digits, 16))
            idx += 3
            continue
        if char not in _TOPIC_SAFE_CHARS:
            raise ParseError("malformed topic segment", value)
        data.append(ord(char))
        idx += 1
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise ParseError("malformed topic segment", value) from err


def topic_safe_id(device: Device) -> str:
    return topic_safe_string(device.id)


def device_reference(device: Device) -> dict[str, Any]:
    """Device block of a discovery payload."""
    reference: dict[str, Any] = {
        "identifiers": [f"{ORIGIN_NAME}-{topic_safe_id(device)}"],
        "name": device.name,
        "manufacturer": MANUFACTURER,
        "model": device.sku,
    }
    if device.room:
        reference["suggested_area"] = device.room
    return reference


def origin_reference() -> dict[str, str]:
    return {"name": ORIGIN_NAME, "sw_version": VERSION}


# ── Entity descriptions ───────────────────────────────────────────────


@dataclass(frozen=True)
class EntityDescription:
    """Immutable MQTT discovery config of a ``number`` entity."""

    unique_id: str
    name: str
    command_topic: str
    min: int
    max: int
    unit_of_measurement: str
    step: float = 1.0
    state_topic: str | None = None
    availability_topic: str = AVAILABILITY_TOPIC
    device: dict[str, Any] = field(default_factory=dict, hash=False)
    origin: dict[str, str] = field(default_factory=origin_reference, hash=False)
    device_class: str | None = DEVICE_CLASS_TEMPERATURE
    icon: str | None = ICON_THERMOMETER
    entity_category: str | None = None
    component: str = "number"

    def as_discovery_payload(self) -> dict[str, Any]:
        """Return the JSON-serializable discovery config, omitting unset fields."""
        payload: dict[str, Any] = {
            "availability_topic": self.availability_topic,
            "name": self.name,
            "entity_category": self.entity_category,
            "origin": dict(self.origin),
            "device": dict(self.device),
            "unique_id": self.unique_id,
            "device_class": self.device_class,
            "icon": self.icon,
            "state_topic": self.state_topic,
            "command_topic": self.command_topic,
            "min": self.min,
            "max": self.max,
            "step": self.step,
            "unit_of_measurement": self.unit_of_measurement,
        }
        return {key: value for key, value in payload.items() if value is not None}


class EntityInstance(abc.ABC):
    """A bridge entity that can publish its config and its state."""

    @abc.abstractmethod
    async def async_publish_config(self, publisher: Publisher) -> None:
        """Publish the discovery config of this entity."""

    @abc.abstractmethod
    async def async_notify_state(self, publisher: Publisher) -> None:
        """Publish the current state of this entity."""


class TargetTemperatureEntity(EntityInstance):
    """Number entity that sets the target temperature of a device."""

    def __init__(self, description: EntityDescription) -> None:
        self.description = description

    @classmethod
    async def async_build(
        cls,
        device: Device,
        state: StateHandle,
        capability: DeviceCapability,
    ) -> TargetTemperatureEntity:
        """Build the entity for a temperature-setting capability.

        The display scale is read from *state* once; a later change of the
        preference does not affect an entity that was already built.
        """
        scale = await state.async_get_temperature_scale()
        constraints = parse_temperature_constraints(capability).as_unit(scale)

        safe_id = topic_safe_id(device)
        safe_instance = topic_safe_string(capability.instance)
        unique_id = f"{safe_id}-{safe_instance}"
        command_topic = (
            f"{TOPIC_PREFIX}/{safe_id}/{SET_TEMPERATURE_COMMAND}"
            f"/{safe_instance}/{scale.token}"
        )

        _LOGGER.debug(
            "Built %s for %s: %s..%s %s",
            unique_id,
            device.id,
            constraints.min,
            constraints.max,
            scale.token,
        )
        return cls(
            EntityDescription(
                unique_id=unique_id,
                name=TARGET_TEMPERATURE_NAME,
                command_topic=command_topic,
                min=math.floor(constraints.min.value),
                max=math.ceil(constraints.max.value),
                step=1.0,
                unit_of_measurement=scale.unit_of_measurement,
                device=device_reference(device),
            )
        )

    async def async_publish_config(self, publisher: Publisher) -> None:
        await publisher.async_publish_entity(self.description)

    async def async_notify_state(self, publisher: Publisher) -> None:
        # No state to publish
        return None


class EntityList:
    """Collection of entities published together."""

    def __init__(self, entities: Iterable[EntityInstance] = ()) -> None:
        self._entities: list[EntityInstance] = list(entities)

    def add(self, entity: EntityInstance) -> None:
        self._entities.append(entity)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityInstance]:
        return iter(self._entities)

    async def async_publish_config(self, publisher: Publisher) -> None:
        for entity in self._entities:
            await entity.async_publish_config(publisher)

    async def async_notify_state(self, publisher: Publisher) -> None:
        for entity in self._entities:
            await entity.async_notify_state(publisher)
