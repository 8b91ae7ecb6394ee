"""Constants for CC-RT-BLE thermostats."""

from __future__ import annotations

MANUFACTURER = "eQ-3"
MODEL = "CC-RT-BLE"

# GATT signature, compact lower-case hex as reported by the adapter boundary
UUID_SERVICE = "3e135142654f9090134aa6ff5bb77046"
UUID_COMMAND = "3fa4585ace4a3baddb4bb8df8179ea09"
UUID_DATA = "d0e8434dcd290996af416c90f4e0eb2a"

CMD_GET_INFO = 0x00
CMD_GET_STATUS = 0x03
CMD_SET_TARGET_TEMPERATURE = 0x41
CMD_SET_COMFORT_TEMPERATURE = 0x43
CMD_SET_ECO_TEMPERATURE = 0x44
CMD_SET_BOOST = 0x45

MSG_INFO = 0x01
MSG_STATUS = 0x02
STATUS_SUBTYPE_DEFAULT = 0x01

# Reply event kinds
EVENT_VERSION = "version"
EVENT_STATUS = "status"

SERIAL_CHAR_OFFSET = 0x30
TEMPERATURE_OFFSET_BIAS = 7
WINDOW_OPEN_TIME_STEP = 5
AWAY_YEAR_BASE = 2000

DEFAULT_TIMEOUT = 10.0
DEFAULT_DISCOVERY_DURATION = 10.0
POWER_POLL_INTERVAL = 2.0

CONF_DURATION = "duration"
CONF_ADDRESSES = "addresses"
CONF_IGNORE_UNKNOWN = "ignore_unknown"
CONF_IGNORE_UNKNOWN_ALIAS = "ignoreUnknown"
