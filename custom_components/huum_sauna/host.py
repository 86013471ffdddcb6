"""Capability interface between the sync bridge and its host framework.

The bridge only talks to :class:`AccessoryService` and :class:`Characteristic`.
:class:`ThermostatService` is the in-process implementation used by the Home
Assistant entity.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from enum import IntEnum, StrEnum
import logging
from typing import Any, Protocol

_LOGGER = logging.getLogger(__name__)

GetHandler = Callable[[], Awaitable[Any]]
SetHandler = Callable[[Any], Awaitable[None]]
UpdateListener = Callable[["CharacteristicKind", Any], None]


class CharacteristicKind(StrEnum):
    """Characteristics exposed by the thermostat service."""

    CURRENT_TEMPERATURE = "current_temperature"
    TARGET_TEMPERATURE = "target_temperature"
    CURRENT_HEATING_STATE = "current_heating_state"
    TARGET_HEATING_STATE = "target_heating_state"


class HeatingState(IntEnum):
    """Heating/cooling state values (HomeKit numbering, cooling excluded)."""

    OFF = 0
    HEAT = 1


class Characteristic(Protocol):
    """Handle to one characteristic of a host service."""

    def on_get(self, handler: GetHandler) -> Characteristic: ...

    def on_set(self, handler: SetHandler) -> Characteristic: ...

    def set_props(self, **props: Any) -> Characteristic: ...


class AccessoryService(Protocol):
    """Host service the bridge registers handlers on and pushes values into."""

    def get_characteristic(self, kind: CharacteristicKind) -> Characteristic: ...

    def update_characteristic(self, kind: CharacteristicKind, value: Any) -> None: ...


class LocalCharacteristic:
    """In-memory characteristic storing its value, props and handlers."""

    def __init__(self, kind: CharacteristicKind, initial: Any = None) -> None:
        """Initialise an empty characteristic."""
        self.kind = kind
        self.value: Any = initial
        self.props: dict[str, Any] = {}
        self._get_handler: GetHandler | None = None
        self._set_handler: SetHandler | None = None

    @property
    def writable(self) -> bool:
        """Return True when a set handler is registered."""

        return self._set_handler is not None

    def on_get(self, handler: GetHandler) -> LocalCharacteristic:
        self._get_handler = handler
        return self

    def on_set(self, handler: SetHandler) -> LocalCharacteristic:
        self._set_handler = handler
        return self

    def set_props(self, **props: Any) -> LocalCharacteristic:
        self.props.update(props)
        return self

    def validate(self, value: Any) -> None:
        """Raise ``ValueError`` if ``value`` violates the characteristic props."""

        valid_values: Iterable[Any] | None = self.props.get("valid_values")
        if valid_values is not None and value not in valid_values:
            raise ValueError(f"{value!r} is not a valid value for {self.kind}")
        min_value = self.props.get("min_value")
        if min_value is not None and value < min_value:
            raise ValueError(f"{value!r} is below {min_value!r} for {self.kind}")
        max_value = self.props.get("max_value")
        if max_value is not None and value > max_value:
            raise ValueError(f"{value!r} is above {max_value!r} for {self.kind}")

    async def async_get(self) -> Any:
        """Invoke the get handler, caching and returning its value."""

        if self._get_handler is not None:
            self.value = await self._get_handler()
        return self.value

    async def async_set(self, value: Any) -> None:
        """Validate ``value`` and hand it to the set handler."""

        if self._set_handler is None:
            raise ValueError(f"Characteristic {self.kind} is read-only")
        self.validate(value)
        await self._set_handler(value)


class ThermostatService:
    """Thermostat service holding the four exposed characteristics."""

    def __init__(self) -> None:
        """Create characteristics with conservative initial values."""
        self._characteristics: dict[CharacteristicKind, LocalCharacteristic] = {
            CharacteristicKind.CURRENT_TEMPERATURE: LocalCharacteristic(
                CharacteristicKind.CURRENT_TEMPERATURE, 0.0
            ),
            CharacteristicKind.TARGET_TEMPERATURE: LocalCharacteristic(
                CharacteristicKind.TARGET_TEMPERATURE
            ),
            CharacteristicKind.CURRENT_HEATING_STATE: LocalCharacteristic(
                CharacteristicKind.CURRENT_HEATING_STATE, HeatingState.OFF
            ),
            CharacteristicKind.TARGET_HEATING_STATE: LocalCharacteristic(
                CharacteristicKind.TARGET_HEATING_STATE, HeatingState.OFF
            ),
        }
        self._listeners: list[UpdateListener] = []

    def get_characteristic(self, kind: CharacteristicKind) -> LocalCharacteristic:
        return self._characteristics[CharacteristicKind(kind)]

    def value(self, kind: CharacteristicKind) -> Any:
        """Return the last known value of ``kind``."""

        return self.get_characteristic(kind).value

    def props(self, kind: CharacteristicKind) -> dict[str, Any]:
        """Return the props registered for ``kind``."""

        return dict(self.get_characteristic(kind).props)

    def update_characteristic(self, kind: CharacteristicKind, value: Any) -> None:
        """Store a pushed value and notify listeners."""

        self.get_characteristic(kind).value = value
        for listener in list(self._listeners):
            listener(kind, value)

    def async_add_listener(self, listener: UpdateListener) -> Callable[[], None]:
        """Register ``listener`` for pushed updates; return an unsubscribe callable."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def async_read(self, kind: CharacteristicKind) -> Any:
        """Read ``kind`` on demand through its get handler."""

        return await self.get_characteristic(kind).async_get()

    async def async_write(self, kind: CharacteristicKind, value: Any) -> None:
        """Write ``value`` to ``kind`` through its set handler."""

        _LOGGER.debug("Write %s=%s", kind, value)
        await self.get_characteristic(kind).async_set(value)
