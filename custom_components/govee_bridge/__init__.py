"""Govee Bridge: expose vendor device capabilities through MQTT discovery.

Setup only subscribes to command topics. The vendor API client feeds the
bridge through ``hass.data[DOMAIN]``: it installs the call that changes a
device's target temperature with ``state.set_controller(...)`` and registers
each device with ``await state.async_add_device(device, publisher)``. Until a
device is registered, commands addressed to it are dropped as not found.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import voluptuous as vol

from homeassistant.components import mqtt
from homeassistant.core import HomeAssistant
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .bridge import BridgeState, MqttPublisher
from .command import (
    SET_TEMPERATURE_ROUTE,
    CommandRouter,
    async_handle_set_temperature,
)
from .const import CONF_DISCOVERY_PREFIX, DEFAULT_DISCOVERY_PREFIX, DOMAIN
from .errors import GoveeBridgeError, UpstreamError

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Optional(
                    CONF_DISCOVERY_PREFIX, default=DEFAULT_DISCOVERY_PREFIX
                ): cv.string,
            }
        )
    },
    extra=vol.ALLOW_EXTRA,
)


@dataclass
class GoveeBridgeData:
    """Runtime objects stored in ``hass.data[DOMAIN]``.

    ``state`` and ``publisher`` are the entry points for the vendor client.
    """

    state: BridgeState
    publisher: MqttPublisher
    router: CommandRouter
    unsubscribe: list[Callable[[], None]] = field(default_factory=list)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the bridge from YAML."""

    conf = config.get(DOMAIN) or {}
    discovery_prefix = conf.get(CONF_DISCOVERY_PREFIX, DEFAULT_DISCOVERY_PREFIX)

    if not await mqtt.async_wait_for_mqtt_client(hass):
        _LOGGER.error("MQTT integration is not available; Govee Bridge not started")
        return False

    state = BridgeState(hass)
    publisher = MqttPublisher(hass, discovery_prefix)
    router = CommandRouter(state)
    router.route(SET_TEMPERATURE_ROUTE, async_handle_set_temperature)

    async def _async_on_command(msg: mqtt.ReceiveMessage) -> None:
        payload = msg.payload
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", "replace")
        try:
            await router.async_dispatch(msg.topic, payload)
        except UpstreamError as err:
            _LOGGER.error("Command on %s failed: %s", msg.topic, err)
        except GoveeBridgeError as err:
            _LOGGER.warning("Dropping command on %s: %s", msg.topic, err)

    data = GoveeBridgeData(state=state, publisher=publisher, router=router)
    for topic in router.subscription_topics:
        _LOGGER.debug("Subscribing to %s", topic)
        data.unsubscribe.append(
            await mqtt.async_subscribe(hass, topic, _async_on_command)
        )

    await publisher.async_publish_availability()
    hass.data[DOMAIN] = data
    return True
