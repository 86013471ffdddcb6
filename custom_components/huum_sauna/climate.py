"""Climate entity backed by the sauna thermostat service."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.core import callback
from homeassistant.helpers.device_registry import DeviceInfo

from .bridge import SaunaBridge
from .const import DEFAULT_NAME, DOMAIN
from .host import CharacteristicKind, HeatingState, ThermostatService
from .units import TemperatureUnit
from .utils import float_or_none

_LOGGER = logging.getLogger(__name__)

_HVAC_TO_STATE = {HVACMode.OFF: HeatingState.OFF, HVACMode.HEAT: HeatingState.HEAT}


async def async_setup_entry(hass, entry, async_add_entities):
    """Create the single sauna climate entity."""
    data = hass.data[DOMAIN][entry.entry_id]
    entity = HuumSaunaClimateEntity(
        data["bridge"],
        data["service"],
        unique_id=f"{DOMAIN}:{entry.unique_id or entry.entry_id}:climate",
    )
    _LOGGER.debug("Adding sauna climate entity %s", entity.unique_id)
    async_add_entities([entity], update_before_add=True)


class HuumSaunaClimateEntity(ClimateEntity):
    """HA climate entity rendering the sauna thermostat service."""

    _attr_has_entity_name = True
    _attr_name = None
    _attr_should_poll = False
    _attr_hvac_modes = [HVACMode.OFF, HVACMode.HEAT]
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.TURN_ON
        | ClimateEntityFeature.TURN_OFF
    )

    def __init__(
        self,
        bridge: SaunaBridge,
        service: ThermostatService,
        *,
        unique_id: str,
    ) -> None:
        """Initialise the entity around an existing bridge and service."""
        self._bridge = bridge
        self._service = service
        self._attr_unique_id = unique_id
        self._attr_temperature_unit = (
            UnitOfTemperature.CELSIUS
            if bridge.config.temperature_unit == TemperatureUnit.CELSIUS
            else UnitOfTemperature.FAHRENHEIT
        )
        props = service.props(CharacteristicKind.TARGET_TEMPERATURE)
        self._attr_min_temp = props.get("min_value", bridge.target_range.min)
        self._attr_max_temp = props.get("max_value", bridge.target_range.max)
        self._attr_target_temperature_step = props.get("min_step", 1)
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, unique_id.rsplit(":", 1)[0])},
            manufacturer="HUUM",
            name=DEFAULT_NAME,
        )
        self._unsub_service = None

    async def async_added_to_hass(self) -> None:
        """Listen for state pushed by the poll loop."""
        await super().async_added_to_hass()
        self._unsub_service = self._service.async_add_listener(self._handle_push)

    async def async_will_remove_from_hass(self) -> None:
        """Stop listening for pushed state."""
        if self._unsub_service is not None:
            self._unsub_service()
            self._unsub_service = None
        await super().async_will_remove_from_hass()

    @callback
    def _handle_push(self, kind: CharacteristicKind, value: Any) -> None:
        # The bridge pushes all four characteristics per tick; write once.
        if kind == CharacteristicKind.TARGET_HEATING_STATE:
            self.async_write_ha_state()

    async def async_update(self) -> None:
        """Read every characteristic on demand."""
        for kind in CharacteristicKind:
            await self._service.async_read(kind)

    @property
    def current_temperature(self) -> float | None:
        return float_or_none(self._service.value(CharacteristicKind.CURRENT_TEMPERATURE))

    @property
    def target_temperature(self) -> float | None:
        return float_or_none(self._service.value(CharacteristicKind.TARGET_TEMPERATURE))

    @property
    def hvac_mode(self) -> HVACMode:
        state = self._service.value(CharacteristicKind.TARGET_HEATING_STATE)
        return HVACMode.HEAT if state == HeatingState.HEAT else HVACMode.OFF

    @property
    def hvac_action(self) -> HVACAction:
        state = self._service.value(CharacteristicKind.CURRENT_HEATING_STATE)
        return HVACAction.HEATING if state == HeatingState.HEAT else HVACAction.OFF

    async def async_set_temperature(self, **kwargs: Any) -> None:
        """Start heating towards the requested temperature."""
        raw = kwargs.get(ATTR_TEMPERATURE)
        value = float_or_none(raw)
        if value is None:
            _LOGGER.error("Invalid temperature payload: %r", raw)
            return
        value = max(self.min_temp, min(self.max_temp, value))
        await self._service.async_write(CharacteristicKind.TARGET_TEMPERATURE, value)

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        """Turn heating on or off."""
        state = _HVAC_TO_STATE.get(hvac_mode)
        if state is None:
            _LOGGER.error("Unsupported hvac_mode=%s", hvac_mode)
            return
        await self._service.async_write(CharacteristicKind.TARGET_HEATING_STATE, state)

    async def async_turn_on(self) -> None:
        await self.async_set_hvac_mode(HVACMode.HEAT)

    async def async_turn_off(self) -> None:
        await self.async_set_hvac_mode(HVACMode.OFF)
