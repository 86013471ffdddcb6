"""State synchronisation between the HUUM cloud and a thermostat service."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Any

import aiohttp

from .api import HuumAuthError, HuumClient, HuumError
from .config import DeviceConfig
from .const import POLL_FALLBACK_CURRENT_CELSIUS, POLL_FALLBACK_TARGET_CELSIUS
from .host import AccessoryService, CharacteristicKind, HeatingState
from .sanitize import redact_text
from .status import ParseError, RemoteStatus
from .units import (
    TargetRange,
    celsius_to_display,
    clamp_to_device_range,
    display_to_celsius,
)
from .utils import float_or_none, format_number

_LOGGER = logging.getLogger(__name__)

SleepCallable = Callable[[float], Awaitable[Any]]

_REMOTE_ERRORS = (HuumError, aiohttp.ClientError, asyncio.TimeoutError)


class PollState(StrEnum):
    """State of the polling loop."""

    IDLE = "idle"
    FETCHING = "fetching"


@dataclass(frozen=True, slots=True)
class ExposedState:
    """Host-visible projection of the sauna, in the display unit."""

    current_temperature: float
    target_temperature: float
    current_heating_state: HeatingState
    target_heating_state: HeatingState

    def as_characteristics(self) -> dict[CharacteristicKind, Any]:
        """Return the state keyed by characteristic."""

        return {
            CharacteristicKind.CURRENT_TEMPERATURE: self.current_temperature,
            CharacteristicKind.TARGET_TEMPERATURE: self.target_temperature,
            CharacteristicKind.CURRENT_HEATING_STATE: self.current_heating_state,
            CharacteristicKind.TARGET_HEATING_STATE: self.target_heating_state,
        }


class SaunaBridge:
    """Expose one HUUM sauna as a thermostat and keep it in sync.

    Read handlers fetch fresh status on every call. Write handlers translate
    display-unit values to Celsius and fire start/stop commands. A repeating
    poll task pushes all four characteristics into the service; a failed tick
    leaves the last pushed values untouched.

    The cloud reports a single heating signal, so current and target heating
    state are always equal right after a fetch. Rapid on/off toggles may land
    on the device out of order since commands are not sequenced.
    """

    def __init__(
        self,
        config: DeviceConfig,
        client: HuumClient,
        service: AccessoryService,
        *,
        sleep: SleepCallable = asyncio.sleep,
        start_polling: bool = True,
    ) -> None:
        """Register handlers on ``service`` and start polling.

        No network call is made here; polling requires a running event loop
        unless ``start_polling`` is False.
        """
        self._config = config
        self._unit = config.temperature_unit
        self._client = client
        self._service = service
        self._sleep = sleep
        self.target_range: TargetRange = config.target_range
        self._state = ExposedState(
            current_temperature=0.0,
            target_temperature=self.target_range.min,
            current_heating_state=HeatingState.OFF,
            target_heating_state=HeatingState.OFF,
        )
        self._poll_task: asyncio.Task[None] | None = None
        self._tick_tasks: set[asyncio.Task[bool]] = set()
        self._inflight_fetches = 0
        self._register_handlers()
        self._push_state(self._state)
        if start_polling:
            self.start_polling()

    @property
    def config(self) -> DeviceConfig:
        """Return the configuration the bridge was built with."""

        return self._config

    @property
    def state(self) -> ExposedState:
        """Return the last pushed state."""

        return self._state

    @property
    def poll_state(self) -> PollState:
        """Return whether a poll tick is currently fetching."""

        return PollState.FETCHING if self._inflight_fetches else PollState.IDLE

    @property
    def polling(self) -> bool:
        """Return True while the repeating poll task is alive."""

        return self._poll_task is not None and not self._poll_task.done()

    def _register_handlers(self) -> None:
        service = self._service
        service.get_characteristic(CharacteristicKind.CURRENT_TEMPERATURE).on_get(
            self.async_get_current_temperature
        )
        service.get_characteristic(CharacteristicKind.TARGET_TEMPERATURE).on_get(
            self.async_get_target_temperature
        ).on_set(self.async_set_target_temperature).set_props(
            min_value=self.target_range.min,
            max_value=self.target_range.max,
            min_step=1,
        )
        service.get_characteristic(CharacteristicKind.CURRENT_HEATING_STATE).on_get(
            self.async_get_current_heating_state
        )
        service.get_characteristic(CharacteristicKind.TARGET_HEATING_STATE).on_get(
            self.async_get_target_heating_state
        ).on_set(self.async_set_target_heating_state).set_props(
            valid_values=[HeatingState.OFF, HeatingState.HEAT],
        )

    def _to_display(self, celsius: float) -> float:
        return celsius_to_display(celsius, self._unit)

    # -------------------- Remote status --------------------
    async def async_fetch_remote_status(self) -> RemoteStatus | None:
        """Fetch the sauna status; return ``None`` on any remote failure."""

        try:
            payload = await self._client.async_get_status()
        except HuumAuthError as err:
            _LOGGER.error("Error fetching sauna status: authentication failed (%s)", err)
            return None
        except _REMOTE_ERRORS as err:
            _LOGGER.error(
                "Error fetching sauna status: %s",
                redact_text(str(err)) or type(err).__name__,
            )
            return None
        return RemoteStatus.from_payload(payload)

    # -------------------- Read handlers --------------------
    async def async_get_current_temperature(self) -> float:
        """Return the measured temperature; 0 when unavailable."""

        status = await self.async_fetch_remote_status()
        if status is None:
            return 0
        try:
            celsius = status.temperature_celsius()
        except ParseError as err:
            _LOGGER.debug("Current temperature unavailable: %s", err)
            return 0
        return self._to_display(celsius)

    async def async_get_target_temperature(self) -> float:
        """Return the clamped setpoint; the range minimum when unavailable."""

        status = await self.async_fetch_remote_status()
        if status is None:
            return self.target_range.min
        try:
            celsius = status.target_temperature_celsius()
        except ParseError as err:
            _LOGGER.debug("Target temperature unavailable: %s", err)
            return self.target_range.min
        return self._to_display(clamp_to_device_range(celsius))

    async def async_get_current_heating_state(self) -> HeatingState:
        """Return HEAT while the sauna is heating, else OFF."""

        return _heating_state(await self.async_fetch_remote_status())

    async def async_get_target_heating_state(self) -> HeatingState:
        """Return the same signal as the current heating state."""

        return _heating_state(await self.async_fetch_remote_status())

    # -------------------- Write handlers --------------------
    async def async_set_target_temperature(self, value: Any) -> None:
        """Start the sauna heating towards ``value`` (display unit)."""

        display = float_or_none(value)
        if display is None:
            _LOGGER.error("Invalid temperature payload: %r", value)
            return
        target_c = clamp_to_device_range(display_to_celsius(display, self._unit))
        await self.async_start_sauna(target_c)

    async def async_set_target_heating_state(self, state: Any) -> None:
        """Turn heating on at the current setpoint, or stop it."""

        if state == HeatingState.HEAT:
            display = await self.async_get_target_temperature()
            target_c = clamp_to_device_range(display_to_celsius(display, self._unit))
            await self.async_start_sauna(target_c)
            return
        await self.async_stop_sauna()

    # -------------------- Remote commands --------------------
    async def async_start_sauna(self, target_celsius: float) -> bool:
        """POST start; log and swallow failures. Return True on success."""

        try:
            await self._client.async_start(target_celsius)
        except _REMOTE_ERRORS as err:
            _LOGGER.error(
                "Error starting sauna: %s", redact_text(str(err)) or type(err).__name__
            )
            return False
        _LOGGER.info(
            "Sauna started with target temperature: %s°%s",
            format_number(round(self._to_display(target_celsius), 2)),
            self._unit.value,
        )
        return True

    async def async_stop_sauna(self) -> bool:
        """POST stop; log and swallow failures. Return True on success."""

        try:
            await self._client.async_stop()
        except _REMOTE_ERRORS as err:
            _LOGGER.error(
                "Error stopping sauna: %s", redact_text(str(err)) or type(err).__name__
            )
            return False
        _LOGGER.info("Sauna stopped.")
        return True

    # -------------------- Polling --------------------
    def start_polling(self) -> None:
        """Start the repeating poll task if it is not already running."""

        if self.polling:
            return
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll_loop(), name="huum-sauna-poll"
        )
        _LOGGER.debug("Polling every %ss", self._config.poll_interval)

    async def _poll_loop(self) -> None:
        while True:
            await self._sleep(self._config.poll_interval)
            if self._inflight_fetches:
                _LOGGER.debug("Poll tick skipped; previous fetch still running")
                continue
            task = asyncio.get_running_loop().create_task(
                self.async_poll_once(), name="huum-sauna-poll-tick"
            )
            self._tick_tasks.add(task)
            task.add_done_callback(self._finalise_tick)

    def _finalise_tick(self, task: asyncio.Task[bool]) -> None:
        self._tick_tasks.discard(task)
        if task.cancelled():
            return
        exception = task.exception()
        if exception is not None:
            _LOGGER.error("Poll tick raised an exception", exc_info=exception)

    async def async_poll_once(self) -> bool:
        """Run one poll tick. Return True when new state was pushed."""

        self._inflight_fetches += 1
        try:
            status = await self.async_fetch_remote_status()
        finally:
            self._inflight_fetches -= 1
        if status is None:
            _LOGGER.debug("Poll tick: no status, keeping last pushed state")
            return False
        self._push_state(self._state_from_poll(status))
        return True

    def _state_from_poll(self, status: RemoteStatus) -> ExposedState:
        # Poll fallbacks are Celsius values, unlike the read handlers' defaults.
        try:
            current_c = status.temperature_celsius()
        except ParseError:
            current_c = POLL_FALLBACK_CURRENT_CELSIUS
        try:
            target_c = status.target_temperature_celsius()
        except ParseError:
            target_c = POLL_FALLBACK_TARGET_CELSIUS
        heating = _heating_state(status)
        return ExposedState(
            current_temperature=self._to_display(current_c),
            target_temperature=self._to_display(clamp_to_device_range(target_c)),
            current_heating_state=heating,
            target_heating_state=heating,
        )

    def _push_state(self, state: ExposedState) -> None:
        self._state = state
        for kind, value in state.as_characteristics().items():
            self._service.update_characteristic(kind, value)
        _LOGGER.debug("Pushed sauna state: %s", state)

    async def async_stop(self) -> None:
        """Cancel the poll task and any in-flight tick."""

        tasks = [*self._tick_tasks]
        if self._poll_task is not None:
            tasks.append(self._poll_task)
        self._poll_task = None
        self._tick_tasks.clear()
        for task in tasks:
            if not task.done():
                task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        _LOGGER.debug("Polling stopped")


def _heating_state(status: RemoteStatus | None) -> HeatingState:
    if status is not None and status.is_heating:
        return HeatingState.HEAT
    return HeatingState.OFF
