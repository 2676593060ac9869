"""Inbound MQTT command routing for the bridge."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .const import SET_TEMPERATURE_COMMAND, TOPIC_PREFIX
from .entity import decode_topic_safe_string
from .errors import NotFoundError, UpstreamError
from .temperature import TemperatureScale, TemperatureValue

if TYPE_CHECKING:
    from .bridge import Device, StateHandle

_LOGGER = logging.getLogger(__name__)

SET_TEMPERATURE_ROUTE = (
    f"{TOPIC_PREFIX}/:id/{SET_TEMPERATURE_COMMAND}/:instance/:units"
)

CommandHandler = Callable[["StateHandle", dict[str, str], str], Awaitable[None]]


@dataclass(frozen=True)
class TemperatureCommand:
    """A decoded request to change a device's target temperature."""

    device: Device
    instance: str
    value: TemperatureValue


async def async_decode_set_temperature(
    state: StateHandle, params: dict[str, str], payload: str
) -> TemperatureCommand:
    """Turn topic parameters and payload into a TemperatureCommand."""
    device_id = params["id"]
    device = await state.async_resolve_device(device_id)
    if device is None:
        raise NotFoundError(device_id)

    scale = TemperatureScale.parse(params["units"])
    value = TemperatureValue.parse_with_optional_scale(payload, scale)
    return TemperatureCommand(
        device=device,
        instance=decode_topic_safe_string(params["instance"]),
        value=value,
    )


async def async_handle_set_temperature(
    state: StateHandle, params: dict[str, str], payload: str
) -> None:
    """Handle ``set-temperature`` commands."""
    _LOGGER.info("Command: set-temperature for %s: %s", params.get("id"), payload)
    command = await async_decode_set_temperature(state, params, payload)
    try:
        await state.async_set_target_temperature(
            command.device, command.instance, command.value
        )
    except Exception as err:
        raise UpstreamError(command.device.id, command.instance, err) from err


class CommandRouter:
    """Dispatch MQTT topics to handlers using ``:name`` placeholder routes."""

    def __init__(self, state: StateHandle) -> None:
        self.state = state
        self._routes: list[tuple[list[str], CommandHandler]] = []

    def route(self, pattern: str, handler: CommandHandler) -> None:
        self._routes.append((pattern.split("/"), handler))

    @property
    def subscription_topics(self) -> list[str]:
        """MQTT subscription filters covering every registered route."""
        return [
            "/".join("+" if part.startswith(":") else part for part in parts)
            for parts, _handler in self._routes
        ]

    @staticmethod
    def match(pattern: list[str] | str, topic: str) -> dict[str, str] | None:
        """Return the route parameters if *topic* matches *pattern*."""
        if isinstance(pattern, str):
            pattern = pattern.split("/")
        segments = topic.split("/")
        if len(segments) != len(pattern):
            return None
        params: dict[str, str] = {}
        for part, segment in zip(pattern, segments):
            if part.startswith(":"):
                if not segment:
                    return None
                params[part[1:]] = segment
            elif part != segment:
                return None
        return params

    async def async_dispatch(self, topic: str, payload: str) -> bool:
        """Run the handler of the first matching route.

        Returns False when no route matches. Handler errors propagate.
        """
        for parts, handler in self._routes:
            params = self.match(parts, topic)
            if params is None:
                continue
            _LOGGER.debug("Routing %s with %s", topic, params)
            await handler(self.state, params, payload)
            return True
        _LOGGER.debug("No route for %s", topic)
        return False
