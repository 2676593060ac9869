"""Exceptions raised by the Govee Bridge core."""

from __future__ import annotations

from homeassistant.exceptions import HomeAssistantError


class GoveeBridgeError(HomeAssistantError):
    """Base class for bridge failures."""


class SchemaError(GoveeBridgeError):
    """A capability descriptor is missing a field or has an unexpected shape."""

    def __init__(self, message: str, instance: str | None = None) -> None:
        super().__init__(
            f"{message} in capability '{instance}'" if instance else message
        )
        self.instance = instance


class ParseError(GoveeBridgeError):
    """A unit token or command payload could not be parsed."""

    def __init__(self, message: str, text: str | None = None) -> None:
        super().__init__(f"{message}: {text!r}" if text is not None else message)
        self.text = text


class NotFoundError(GoveeBridgeError):
    """A command referenced a device that is not known to the bridge."""

    def __init__(self, device_id: str) -> None:
        super().__init__(f"device '{device_id}' not found")
        self.device_id = device_id


class UpstreamError(GoveeBridgeError):
    """The device mutation call failed; the original error is the cause."""

    def __init__(self, device_id: str, instance: str, cause: BaseException) -> None:
        super().__init__(
            f"setting {instance} on device '{device_id}' failed: {cause}"
        )
        self.device_id = device_id
        self.instance = instance
