"""Shared fixtures for govee_bridge tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from custom_components.govee_bridge.bridge import Device
from custom_components.govee_bridge.capability import DeviceCapability
from custom_components.govee_bridge.const import CAPABILITY_TEMPERATURE_SETTING
from custom_components.govee_bridge.temperature import TemperatureScale

DEVICE_ID = "AA:BB:CC:DD:EE:FF:00:11"
DEVICE_NAME = "Living Room Heater"
DEVICE_SKU = "H7131"
INSTANCE = "targetTemperature"


# ── Capability builders ────────────────────────────────────────────────


def make_capability_dict(
    unit_default: str | None = "Farenheit",
    temperature_unit: str | None = "Celsius",
    minimum: float = 0,
    maximum: float = 30,
    instance: str = INSTANCE,
    temperature_type: str = "INTEGER",
    include_temperature: bool = True,
) -> dict[str, Any]:
    """Vendor JSON for a temperature-setting capability."""
    fields: list[dict[str, Any]] = [
        {
            "fieldName": "autoStop",
            "dataType": "ENUM",
            "options": [
                {"name": "Auto Stop", "value": 1},
                {"name": "Maintain", "value": 0},
            ],
            "defaultValue": 0,
            "required": False,
        },
    ]
    if include_temperature:
        temperature: dict[str, Any] = {
            "fieldName": "temperature",
            "dataType": temperature_type,
            "required": True,
        }
        if temperature_type in ("INTEGER", "FLOAT"):
            temperature["range"] = {"min": minimum, "max": maximum, "precision": 1}
        if temperature_type == "ENUM":
            temperature["options"] = [{"name": "Low", "value": 20}]
        if temperature_unit is not None:
            temperature["unit"] = temperature_unit
        fields.append(temperature)
    if unit_default is not None:
        fields.append(
            {
                "fieldName": "unit",
                "dataType": "ENUM",
                "options": [
                    {"name": "Celsius", "value": "Celsius"},
                    {"name": "Fahrenheit", "value": "Farenheit"},
                ],
                "defaultValue": unit_default,
                "required": True,
            }
        )
    return {
        "type": CAPABILITY_TEMPERATURE_SETTING,
        "instance": instance,
        "parameters": {"dataType": "STRUCT", "fields": fields},
    }


def make_capability(**kwargs: Any) -> DeviceCapability:
    """Decoded temperature-setting capability; see make_capability_dict."""
    return DeviceCapability.from_dict(make_capability_dict(**kwargs))


def make_device(
    device_id: str = DEVICE_ID,
    name: str = DEVICE_NAME,
    capabilities: tuple[DeviceCapability, ...] | None = None,
    room: str | None = None,
) -> Device:
    return Device(
        id=device_id,
        name=name,
        sku=DEVICE_SKU,
        room=room,
        capabilities=capabilities if capabilities is not None else (make_capability(),),
    )


# ── Collaborator fakes ─────────────────────────────────────────────────


class FakeState:
    """StateHandle double with a fixed preference and a device table."""

    def __init__(
        self,
        scale: TemperatureScale = TemperatureScale.FARENHEIT,
        devices: tuple[Device, ...] = (),
    ) -> None:
        self.devices = {device.id: device for device in devices}
        self.async_get_temperature_scale = AsyncMock(return_value=scale)
        self.async_resolve_device = AsyncMock(side_effect=self.devices.get)
        self.async_set_target_temperature = AsyncMock(return_value=None)


class FakePublisher:
    """Publisher double that records every description it is given."""

    def __init__(self) -> None:
        self.async_publish_entity = AsyncMock(return_value=None)

    @property
    def published(self) -> list[Any]:
        return [call.args[0] for call in self.async_publish_entity.call_args_list]


@pytest.fixture
def device() -> Device:
    return make_device()


@pytest.fixture
def state(device: Device) -> FakeState:
    """Fahrenheit preference with the default device registered."""
    return FakeState(devices=(device,))


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()
