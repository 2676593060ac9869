"""Constants for the Govee Bridge integration."""

DOMAIN = "govee_bridge"
VERSION = "0.4.0"

CONF_DISCOVERY_PREFIX = "discovery_prefix"
DEFAULT_DISCOVERY_PREFIX = "homeassistant"

TOPIC_PREFIX = "gv2mqtt"
AVAILABILITY_TOPIC = f"{TOPIC_PREFIX}/availability"
PAYLOAD_ONLINE = "online"

SET_TEMPERATURE_COMMAND = "set-temperature"

ORIGIN_NAME = "govee_bridge"
MANUFACTURER = "Govee"

CAPABILITY_TEMPERATURE_SETTING = "devices.capabilities.temperature_setting"

TARGET_TEMPERATURE_NAME = "Target Temperature"
ICON_THERMOMETER = "mdi:thermometer"
