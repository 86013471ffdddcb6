"""Constants for the HUUM sauna integration."""

from __future__ import annotations

from typing import Final

# Domain
DOMAIN: Final = "huum_sauna"
DEFAULT_NAME: Final = "Huum Sauna"
SERVICE_NAME: Final = "Sauna Temperature"

# HTTP base & paths
API_BASE: Final = "https://api.huum.eu/action/home/"
STATUS_PATH: Final = "status"
START_PATH: Final = "start"
STOP_PATH: Final = "stop"
REQUEST_TIMEOUT: Final = 25  # seconds

# Remote status sentinel for "actively heating"
STATUS_CODE_HEATING: Final = 231

# Remote-accepted target temperature range (Celsius)
DEVICE_MIN_CELSIUS: Final = 40.0
DEVICE_MAX_CELSIUS: Final = 110.0

# Poll-tick fallbacks (Celsius) when a pushed field cannot be parsed
POLL_FALLBACK_CURRENT_CELSIUS: Final = 0.0
POLL_FALLBACK_TARGET_CELSIUS: Final = DEVICE_MIN_CELSIUS

# Configuration keys
CONF_TEMPERATURE_UNIT: Final = "temperatureUnit"
CONF_POLL_INTERVAL: Final = "pollInterval"

# Polling
DEFAULT_POLL_INTERVAL: Final = 30  # seconds
MAX_POLL_INTERVAL: Final = 3600  # seconds
