"""Temperature values tagged with their scale."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum

from homeassistant.const import UnitOfTemperature
from homeassistant.util.unit_conversion import TemperatureConverter

from .errors import ParseError

DEVICE_CLASS_TEMPERATURE = "temperature"

_DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)$")


class TemperatureScale(Enum):
    """Temperature scales understood on the wire.

    The vendor API spells Fahrenheit as ``Farenheit``; that spelling is the
    wire token and is kept as-is.
    """

    # fmt: off
    #           token        unit_of_measurement
    CELSIUS   = ("Celsius",   UnitOfTemperature.CELSIUS)
    FARENHEIT = ("Farenheit", UnitOfTemperature.FAHRENHEIT)
    # fmt: on

    def __init__(self, token: str, unit_of_measurement: UnitOfTemperature) -> None:
        self.token = token
        self.unit_of_measurement = unit_of_measurement

    def __str__(self) -> str:
        return self.token

    @classmethod
    def parse(cls, token: str) -> TemperatureScale:
        """Parse a wire token. Matching is exact and case-sensitive."""
        for scale in cls:
            if scale.token == token:
                return scale
        raise ParseError("unknown temperature scale", token)

    @classmethod
    def from_unit_of_measurement(cls, unit: str) -> TemperatureScale:
        """Map a Home Assistant temperature unit to a scale."""
        for scale in cls:
            if scale.unit_of_measurement == unit:
                return scale
        raise ParseError("unsupported temperature unit", unit)


@dataclass(frozen=True)
class TemperatureValue:
    """A temperature reading or setpoint in a specific scale."""

    value: float
    unit: TemperatureScale

    def as_unit(self, unit: TemperatureScale) -> TemperatureValue:
        """Return this temperature expressed in *unit*."""
        if unit is self.unit:
            return self
        converted = TemperatureConverter.convert(
            self.value,
            self.unit.unit_of_measurement,
            unit.unit_of_measurement,
        )
        return TemperatureValue(converted, unit)

    @classmethod
    def parse_with_optional_scale(
        cls, text: str, scale: TemperatureScale | None
    ) -> TemperatureValue:
        """Parse a decimal temperature from *text* in the given *scale*."""
        stripped = text.strip()
        if not _DECIMAL_RE.match(stripped):
            raise ParseError("invalid temperature", text)
        if scale is None:
            raise ParseError("no temperature scale given for", text)
        value = float(stripped)
        if not math.isfinite(value):
            raise ParseError("temperature out of range", text)
        return cls(value, scale)

    def __str__(self) -> str:
        return f"{self.value}{self.unit.unit_of_measurement}"
