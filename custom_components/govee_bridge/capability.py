"""Device capability descriptors and temperature constraint extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .errors import SchemaError
from .temperature import TemperatureScale, TemperatureValue

_LOGGER = logging.getLogger(__name__)

FIELD_UNIT = "unit"
FIELD_TEMPERATURE = "temperature"

DATA_TYPE_INTEGER = "INTEGER"
DATA_TYPE_FLOAT = "FLOAT"
DATA_TYPE_ENUM = "ENUM"
DATA_TYPE_STRUCT = "STRUCT"


@dataclass(frozen=True)
class IntegerRange:
    """Inclusive numeric range reported by the vendor."""

    min: float
    max: float
    precision: float = 1


@dataclass(frozen=True)
class EnumOption:
    """One selectable value of an enum parameter."""

    name: str
    value: Any


@dataclass(frozen=True)
class IntegerParameters:
    """Integer value constrained to a range, optionally tagged with a unit."""

    range: IntegerRange
    unit: str | None = None


@dataclass(frozen=True)
class FloatParameters:
    """Floating point value constrained to a range."""

    range: IntegerRange
    unit: str | None = None


@dataclass(frozen=True)
class EnumParameters:
    """Value chosen from a fixed list of options."""

    options: tuple[EnumOption, ...] = ()


@dataclass(frozen=True)
class StructParameters:
    """Composite value made of named fields."""

    fields: tuple[StructField, ...] = ()


DeviceParameters = (
    IntegerParameters | FloatParameters | EnumParameters | StructParameters
)


@dataclass(frozen=True)
class StructField:
    """A named field inside a struct parameter."""

    field_name: str
    field_type: DeviceParameters
    default_value: Any = None
    required: bool = False


@dataclass(frozen=True)
class DeviceCapability:
    """A controllable device parameter as described by the vendor."""

    kind: str
    instance: str
    parameters: DeviceParameters | None = None

    def struct_field_by_name(self, name: str) -> StructField | None:
        """Return the struct field called *name*, if there is one."""
        if not isinstance(self.parameters, StructParameters):
            return None
        for struct_field in self.parameters.fields:
            if struct_field.field_name == name:
                return struct_field
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceCapability:
        """Decode a capability from the vendor's JSON representation."""
        try:
            validated = CAPABILITY_SCHEMA(data)
        except vol.Invalid as err:
            raise SchemaError(
                f"invalid capability: {err}",
                data.get("instance") if isinstance(data, dict) else None,
            ) from err
        instance = validated["instance"]
        parameters = validated.get("parameters")
        return cls(
            kind=validated["type"],
            instance=instance,
            parameters=(
                _decode_parameters(parameters, instance)
                if parameters is not None
                else None
            ),
        )


# ── Vendor JSON decoding ──────────────────────────────────────────────


def _number(value: Any) -> float | int:
    """Accept JSON numbers only; strings and booleans are not coerced."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise vol.Invalid(f"expected a number, got {value!r}")
    return value


RANGE_SCHEMA = vol.Schema(
    {
        vol.Required("min"): _number,
        vol.Required("max"): _number,
        vol.Optional("precision", default=1): _number,
    },
    extra=vol.ALLOW_EXTRA,
)

OPTION_SCHEMA = vol.Schema(
    {
        vol.Required("name"): str,
        vol.Required("value"): object,
    },
    extra=vol.ALLOW_EXTRA,
)

PARAMETERS_SCHEMA = vol.Schema(
    {
        vol.Required("dataType"): vol.In(
            [DATA_TYPE_INTEGER, DATA_TYPE_FLOAT, DATA_TYPE_ENUM, DATA_TYPE_STRUCT]
        ),
        vol.Optional("unit"): vol.Any(str, None),
        vol.Optional("range"): RANGE_SCHEMA,
        vol.Optional("options", default=list): [OPTION_SCHEMA],
        vol.Optional("fields", default=list): [dict],
    },
    extra=vol.ALLOW_EXTRA,
)

FIELD_SCHEMA = PARAMETERS_SCHEMA.extend(
    {
        vol.Required("fieldName"): str,
        vol.Optional("defaultValue"): object,
        vol.Optional("required", default=False): bool,
    }
)

CAPABILITY_SCHEMA = vol.Schema(
    {
        vol.Required("type"): str,
        vol.Required("instance"): str,
        vol.Optional("parameters"): vol.Any(dict, None),
    },
    extra=vol.ALLOW_EXTRA,
)


def _decode_parameters(data: dict[str, Any], instance: str) -> DeviceParameters:
    try:
        validated = PARAMETERS_SCHEMA(data)
    except vol.Invalid as err:
        raise SchemaError(f"invalid parameters: {err}", instance) from err

    data_type = validated["dataType"]
    if data_type in (DATA_TYPE_INTEGER, DATA_TYPE_FLOAT):
        if "range" not in validated:
            raise SchemaError(f"{data_type} parameter without range", instance)
        raw_range = validated["range"]
        value_range = IntegerRange(
            min=raw_range["min"],
            max=raw_range["max"],
            precision=raw_range["precision"],
        )
        if data_type == DATA_TYPE_INTEGER:
            return IntegerParameters(range=value_range, unit=validated.get("unit"))
        return FloatParameters(range=value_range, unit=validated.get("unit"))
    if data_type == DATA_TYPE_ENUM:
        return EnumParameters(
            options=tuple(
                EnumOption(name=option["name"], value=option["value"])
                for option in validated["options"]
            )
        )
    if data_type == DATA_TYPE_STRUCT:
        return StructParameters(
            fields=tuple(_decode_field(item, instance) for item in validated["fields"])
        )
    raise SchemaError(f"unsupported dataType {data_type}", instance)


def _decode_field(data: dict[str, Any], instance: str) -> StructField:
    try:
        validated = FIELD_SCHEMA(data)
    except vol.Invalid as err:
        raise SchemaError(f"invalid struct field: {err}", instance) from err
    return StructField(
        field_name=validated["fieldName"],
        field_type=_decode_parameters(data, instance),
        default_value=validated.get("defaultValue"),
        required=validated["required"],
    )


# ── Temperature constraints ───────────────────────────────────────────


@dataclass(frozen=True)
class TemperatureConstraints:
    """Allowed setpoint range; both bounds share a scale."""

    min: TemperatureValue
    max: TemperatureValue

    def as_unit(self, unit: TemperatureScale) -> TemperatureConstraints:
        return TemperatureConstraints(
            min=self.min.as_unit(unit),
            max=self.max.as_unit(unit),
        )


def _scale_from_token(token: Any, fallback: TemperatureScale) -> TemperatureScale:
    """Map a vendor unit token to a scale; unrecognized tokens use *fallback*."""
    if token == TemperatureScale.CELSIUS.token:
        return TemperatureScale.CELSIUS
    if token == TemperatureScale.FARENHEIT.token:
        return TemperatureScale.FARENHEIT
    return fallback


def parse_temperature_constraints(
    capability: DeviceCapability,
) -> TemperatureConstraints:
    """Extract the setpoint range of a temperature-setting capability.

    The capability's declared scale comes from the default value of its
    ``unit`` field and is Fahrenheit unless that default is exactly
    ``Celsius``. The ``temperature`` field's own unit, when recognized,
    describes its raw range; the result is expressed in the declared scale.
    """
    unit_field = capability.struct_field_by_name(FIELD_UNIT)
    declared = (
        _scale_from_token(unit_field.default_value, TemperatureScale.FARENHEIT)
        if unit_field is not None
        else TemperatureScale.FARENHEIT
    )

    temperature = capability.struct_field_by_name(FIELD_TEMPERATURE)
    if temperature is None:
        raise SchemaError("no temperature field", capability.instance)

    field_type = temperature.field_type
    if isinstance(field_type, IntegerParameters):
        range_scale = _scale_from_token(field_type.unit, declared)
        raw_min = TemperatureValue(float(field_type.range.min), range_scale)
        raw_max = TemperatureValue(float(field_type.range.max), range_scale)
        if raw_min.value > raw_max.value:
            _LOGGER.debug(
                "Capability %s reports an inverted range %s..%s",
                capability.instance,
                raw_min,
                raw_max,
            )
        return TemperatureConstraints(
            min=raw_min.as_unit(declared),
            max=raw_max.as_unit(declared),
        )
    if isinstance(field_type, (FloatParameters, EnumParameters, StructParameters)):
        raise SchemaError("unexpected temperature value", capability.instance)
    raise SchemaError(
        f"unexpected temperature value {type(field_type).__name__}",
        capability.instance,
    )
