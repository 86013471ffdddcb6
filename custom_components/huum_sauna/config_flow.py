"""Config flow handlers for the HUUM sauna integration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
import voluptuous as vol

from . import create_client
from .api import HuumAuthError, HuumError
from .config import ConfigurationError, DeviceConfig, device_config_from_mapping
from .const import (
    CONF_POLL_INTERVAL,
    CONF_TEMPERATURE_UNIT,
    DEFAULT_NAME,
    DEFAULT_POLL_INTERVAL,
    DOMAIN,
    MAX_POLL_INTERVAL,
)
from .units import TemperatureUnit

_LOGGER = logging.getLogger(__name__)

_UNIT_CHOICES = {
    TemperatureUnit.FAHRENHEIT.value: "Fahrenheit",
    TemperatureUnit.CELSIUS.value: "Celsius",
}


def _settings_fields(
    default_unit: str = TemperatureUnit.FAHRENHEIT.value,
    default_interval: float = DEFAULT_POLL_INTERVAL,
) -> dict[Any, Any]:
    """Return schema fields for display unit and poll interval."""
    return {
        vol.Required(CONF_TEMPERATURE_UNIT, default=default_unit): vol.In(
            _UNIT_CHOICES
        ),
        vol.Required(CONF_POLL_INTERVAL, default=default_interval): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=MAX_POLL_INTERVAL)
        ),
    }


def _login_schema(
    default_user: str = "",
    default_unit: str = TemperatureUnit.FAHRENHEIT.value,
    default_interval: float = DEFAULT_POLL_INTERVAL,
) -> vol.Schema:
    """Build the login form schema with provided defaults."""
    return vol.Schema(
        {
            vol.Required("username", default=default_user): str,
            vol.Required("password"): str,
            **_settings_fields(default_unit, default_interval),
        }
    )


async def _validate_login(hass: HomeAssistant, config: DeviceConfig) -> None:
    """Ensure the provided credentials can read the sauna status."""
    client = create_client(hass, config)
    await client.async_get_status()


async def _async_check_credentials(
    hass: HomeAssistant, user_input: dict[str, Any]
) -> tuple[DeviceConfig | None, dict[str, str]]:
    """Validate ``user_input``; return the config or form errors."""
    errors: dict[str, str] = {}
    try:
        config = device_config_from_mapping(user_input)
    except ConfigurationError:
        return None, {"base": "invalid_config"}

    try:
        await _validate_login(hass, config)
    except HuumAuthError:
        errors["base"] = "invalid_auth"
    except HuumError:
        errors["base"] = "cannot_connect"
    except Exception:
        _LOGGER.exception("Unexpected error while validating HUUM credentials")
        errors["base"] = "unknown"
    return (None if errors else config), errors


class HuumSaunaConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Set up one sauna per HUUM account."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Collect credentials and create the config entry."""
        errors: dict[str, str] = {}
        if user_input is not None:
            config, errors = await _async_check_credentials(self.hass, user_input)
            if config is not None:
                await self.async_set_unique_id(config.username.lower())
                self._abort_if_unique_id_configured()
                return self.async_create_entry(
                    title=f"{DEFAULT_NAME} ({config.username})",
                    data={
                        "username": config.username,
                        "password": config.password,
                        CONF_TEMPERATURE_UNIT: config.temperature_unit.value,
                        CONF_POLL_INTERVAL: config.poll_interval,
                    },
                )

        defaults = user_input or {}
        return self.async_show_form(
            step_id="user",
            data_schema=_login_schema(
                default_user=(defaults.get("username") or "").strip(),
                default_unit=defaults.get(
                    CONF_TEMPERATURE_UNIT, TemperatureUnit.FAHRENHEIT.value
                ),
                default_interval=defaults.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
            ),
            errors=errors,
        )

    async def async_step_reconfigure(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Replace the stored username/password."""
        entry_id = self.context.get("entry_id")
        entry: ConfigEntry | None = (
            self.hass.config_entries.async_get_entry(entry_id) if entry_id else None
        )
        if entry is None:
            return self.async_abort(reason="no_config_entry")

        errors: dict[str, str] = {}
        if user_input is not None:
            merged = {**entry.data, **user_input}
            config, errors = await _async_check_credentials(self.hass, merged)
            if config is not None:
                new_data = dict(entry.data)
                new_data.update(
                    {"username": config.username, "password": config.password}
                )
                self.hass.config_entries.async_update_entry(entry, data=new_data)
                return self.async_abort(reason="reconfigure_successful")

        schema = vol.Schema(
            {
                vol.Required("username", default=entry.data.get("username", "")): str,
                vol.Required("password"): str,
            }
        )
        return self.async_show_form(
            step_id="reconfigure", data_schema=schema, errors=errors
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> HuumSaunaOptionsFlow:
        """Return the options flow handler for this config entry."""
        return HuumSaunaOptionsFlow(config_entry)


class HuumSaunaOptionsFlow(config_entries.OptionsFlow):
    """Options flow for display unit and poll interval."""

    def __init__(self, entry: ConfigEntry) -> None:
        """Store the entry being configured."""
        self._entry = entry

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show or process the options form."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        current = {**self._entry.data, **self._entry.options}
        schema = vol.Schema(
            _settings_fields(
                current.get(CONF_TEMPERATURE_UNIT, TemperatureUnit.FAHRENHEIT.value),
                current.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL),
            )
        )
        return self.async_show_form(step_id="init", data_schema=schema)
