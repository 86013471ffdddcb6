"""Device configuration parsing and validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any

import voluptuous as vol

from .const import (
    CONF_POLL_INTERVAL,
    CONF_TEMPERATURE_UNIT,
    DEFAULT_POLL_INTERVAL,
    MAX_POLL_INTERVAL,
)
from .units import TargetRange, TemperatureUnit, target_range_for

_LOGGER = logging.getLogger(__name__)

MISSING_CREDENTIALS_MSG = "Username and password are required in the configuration."

# Config entries store snake_case keys; the plugin-style options use camelCase.
_KEY_ALIASES: dict[str, str] = {
    "temperature_unit": CONF_TEMPERATURE_UNIT,
    "poll_interval": CONF_POLL_INTERVAL,
}

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required("username"): vol.All(str, vol.Strip, vol.Length(min=1)),
        vol.Required("password"): vol.All(str, vol.Length(min=1)),
        vol.Optional(
            CONF_TEMPERATURE_UNIT, default=TemperatureUnit.FAHRENHEIT.value
        ): vol.All(vol.Upper, vol.Coerce(TemperatureUnit)),
        vol.Optional(CONF_POLL_INTERVAL, default=DEFAULT_POLL_INTERVAL): vol.All(
            vol.Coerce(float),
            vol.Range(min=0, min_included=False, max=MAX_POLL_INTERVAL),
        ),
    },
    extra=vol.REMOVE_EXTRA,
)


class ConfigurationError(ValueError):
    """The supplied configuration cannot be used to build a bridge."""


@dataclass(frozen=True, slots=True)
class DeviceConfig:
    """Immutable settings for the single managed sauna."""

    username: str
    password: str = field(repr=False)
    temperature_unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        """Reject configurations the bridge cannot run with."""
        if not self.username or not self.password:
            raise ConfigurationError(MISSING_CREDENTIALS_MSG)
        if not self.poll_interval > 0:
            raise ConfigurationError(
                f"Poll interval must be positive, got {self.poll_interval!r}"
            )

    @property
    def target_range(self) -> TargetRange:
        """Return the target temperature bounds in the display unit."""

        return target_range_for(self.temperature_unit)


def device_config_from_mapping(data: Mapping[str, Any]) -> DeviceConfig:
    """Validate raw configuration ``data`` and build a :class:`DeviceConfig`."""

    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key == "username" and isinstance(value, str):
            value = value.strip()
        normalized[_KEY_ALIASES.get(key, key)] = value

    if not normalized.get("username") or not normalized.get("password"):
        raise ConfigurationError(MISSING_CREDENTIALS_MSG)

    try:
        validated = CONFIG_SCHEMA(normalized)
    except vol.Invalid as err:
        raise ConfigurationError(f"Invalid configuration: {err}") from err

    config = DeviceConfig(
        username=validated["username"],
        password=validated["password"],
        temperature_unit=validated[CONF_TEMPERATURE_UNIT],
        poll_interval=validated[CONF_POLL_INTERVAL],
    )
    _LOGGER.debug(
        "Loaded sauna configuration: unit=%s poll_interval=%ss",
        config.temperature_unit.value,
        config.poll_interval,
    )
    return config
