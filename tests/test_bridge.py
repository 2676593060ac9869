"""Tests for the Home Assistant backed state and publisher."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from homeassistant.core import HomeAssistant
from homeassistant.util.unit_system import METRIC_SYSTEM, US_CUSTOMARY_SYSTEM

from custom_components.govee_bridge.bridge import BridgeState, MqttPublisher
from custom_components.govee_bridge.capability import DeviceCapability
from custom_components.govee_bridge.entity import (
    TargetTemperatureEntity,
    topic_safe_string,
)
from custom_components.govee_bridge.temperature import (
    TemperatureScale,
    TemperatureValue,
)

from .conftest import (
    DEVICE_ID,
    DEVICE_NAME,
    INSTANCE,
    FakePublisher,
    make_capability,
    make_device,
)

PATCH_MQTT_PUBLISH = "homeassistant.components.mqtt.async_publish"

SAFE_DEVICE_ID = "AA_3aBB_3aCC_3aDD_3aEE_3aFF_3a00_3a11"


@pytest.fixture
def bridge_state(hass: HomeAssistant) -> BridgeState:
    return BridgeState(hass)


# ── Temperature preference ────────────────────────────────────────────


class TestTemperaturePreference:
    """The display scale follows Home Assistant's unit system."""

    async def test_metric_is_celsius(
        self, hass: HomeAssistant, bridge_state: BridgeState
    ) -> None:
        hass.config.units = METRIC_SYSTEM
        assert (
            await bridge_state.async_get_temperature_scale()
            is TemperatureScale.CELSIUS
        )

    async def test_us_customary_is_fahrenheit(
        self, hass: HomeAssistant, bridge_state: BridgeState
    ) -> None:
        hass.config.units = US_CUSTOMARY_SYSTEM
        assert (
            await bridge_state.async_get_temperature_scale()
            is TemperatureScale.FARENHEIT
        )


# ── Device registration and resolution ────────────────────────────────


class TestDevices:
    """async_add_device and async_resolve_device."""

    async def test_add_device_publishes_temperature_entity(
        self, hass: HomeAssistant, bridge_state: BridgeState
    ) -> None:
        hass.config.units = US_CUSTOMARY_SYSTEM
        publisher = FakePublisher()
        entities = await bridge_state.async_add_device(make_device(), publisher)

        assert len(entities) == 1
        [description] = publisher.published
        assert description.unique_id == f"{SAFE_DEVICE_ID}-{INSTANCE}"
        assert (description.min, description.max) == (32, 86)
        assert bridge_state.entities_for(DEVICE_ID) is entities

    async def test_add_device_skips_malformed_and_unrelated_capabilities(
        self, hass: HomeAssistant, bridge_state: BridgeState
    ) -> None:
        device = make_device(
            capabilities=(
                make_capability(instance="broken", include_temperature=False),
                DeviceCapability.from_dict(
                    {"type": "devices.capabilities.on_off", "instance": "powerSwitch"}
                ),
                make_capability(),
            )
        )
        publisher = FakePublisher()
        entities = await bridge_state.async_add_device(device, publisher)

        assert len(entities) == 1
        assert [d.unique_id for d in publisher.published] == [
            f"{SAFE_DEVICE_ID}-{INSTANCE}"
        ]

    async def test_resolve_device(self, bridge_state: BridgeState) -> None:
        device = make_device(capabilities=())
        await bridge_state.async_add_device(device, FakePublisher())
        assert await bridge_state.async_resolve_device(SAFE_DEVICE_ID) is device

    @pytest.mark.parametrize("lookup", [DEVICE_ID, DEVICE_NAME])
    async def test_resolve_ignores_raw_id_and_name(
        self, bridge_state: BridgeState, lookup: str
    ) -> None:
        await bridge_state.async_add_device(
            make_device(capabilities=()), FakePublisher()
        )
        assert await bridge_state.async_resolve_device(lookup) is None

    async def test_resolve_distinguishes_raw_id_equal_to_other_safe_id(
        self, bridge_state: BridgeState
    ) -> None:
        dashed = make_device("x-y", name="Dashed", capabilities=())
        escaped = make_device("x_2dy", name="Escaped", capabilities=())
        for device in (dashed, escaped):
            await bridge_state.async_add_device(device, FakePublisher())

        assert topic_safe_string("x-y") == "x_2dy"
        assert await bridge_state.async_resolve_device("x_2dy") is dashed
        assert (
            await bridge_state.async_resolve_device(topic_safe_string("x_2dy"))
            is escaped
        )

    async def test_resolve_unknown_device(self, bridge_state: BridgeState) -> None:
        assert await bridge_state.async_resolve_device("missing") is None

    async def test_devices_listing(self, bridge_state: BridgeState) -> None:
        device = make_device(capabilities=())
        await bridge_state.async_add_device(device, FakePublisher())
        assert bridge_state.devices == [device]


# ── Target temperature mutation ───────────────────────────────────────


class TestSetTargetTemperature:
    """Delegation to the vendor controller."""

    async def test_delegates_to_controller(self, hass: HomeAssistant) -> None:
        controller = AsyncMock()
        bridge_state = BridgeState(hass, controller)
        device = make_device()
        value = TemperatureValue(21.5, TemperatureScale.CELSIUS)

        await bridge_state.async_set_target_temperature(device, INSTANCE, value)
        controller.assert_awaited_once_with(device, INSTANCE, value)

    async def test_set_controller(self, bridge_state: BridgeState) -> None:
        controller = AsyncMock()
        bridge_state.set_controller(controller)
        await bridge_state.async_set_target_temperature(
            make_device(), INSTANCE, TemperatureValue(20, TemperatureScale.CELSIUS)
        )
        controller.assert_awaited_once()

    async def test_without_controller(self, bridge_state: BridgeState) -> None:
        with pytest.raises(RuntimeError):
            await bridge_state.async_set_target_temperature(
                make_device(), INSTANCE, TemperatureValue(20, TemperatureScale.CELSIUS)
            )


# ── MqttPublisher ─────────────────────────────────────────────────────


class TestMqttPublisher:
    """Discovery configs are published retained as JSON."""

    async def test_publish_entity(
        self, hass: HomeAssistant, bridge_state: BridgeState
    ) -> None:
        hass.config.units = US_CUSTOMARY_SYSTEM
        entity = await TargetTemperatureEntity.async_build(
            make_device(), bridge_state, make_capability()
        )
        publisher = MqttPublisher(hass, "discovery")

        with patch(PATCH_MQTT_PUBLISH, new_callable=AsyncMock) as mock_publish:
            await entity.async_publish_config(publisher)

        mock_publish.assert_awaited_once()
        args = mock_publish.call_args[0]
        kwargs = mock_publish.call_args[1]
        assert args[1] == f"discovery/number/{SAFE_DEVICE_ID}-{INSTANCE}/config"
        payload = json.loads(args[2])
        assert payload["command_topic"].endswith("/Farenheit")
        assert payload["min"] == 32
        assert payload["max"] == 86
        assert payload["unit_of_measurement"] == "°F"
        assert kwargs["retain"] is True

    async def test_publish_availability(self, hass: HomeAssistant) -> None:
        publisher = MqttPublisher(hass)
        with patch(PATCH_MQTT_PUBLISH, new_callable=AsyncMock) as mock_publish:
            await publisher.async_publish_availability()
        args = mock_publish.call_args[0]
        assert args[1:] == ("gv2mqtt/availability", "online")
