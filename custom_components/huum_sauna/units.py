"""Temperature unit conversion and device range clamping.

The HUUM cloud always speaks Celsius; the operator picks the unit shown to the
host. Callers must reject NaN before calling into this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .const import DEVICE_MAX_CELSIUS, DEVICE_MIN_CELSIUS


class TemperatureUnit(StrEnum):
    """Display unit configured by the operator."""

    CELSIUS = "C"
    FAHRENHEIT = "F"


def celsius_to_display(celsius: float, unit: TemperatureUnit) -> float:
    """Convert a Celsius reading into ``unit``."""

    if unit == TemperatureUnit.FAHRENHEIT:
        return celsius * 9 / 5 + 32
    return celsius


def display_to_celsius(value: float, unit: TemperatureUnit) -> float:
    """Convert a value expressed in ``unit`` back to Celsius."""

    if unit == TemperatureUnit.FAHRENHEIT:
        return (value - 32) * 5 / 9
    return value


def clamp_to_device_range(celsius: float) -> float:
    """Clamp a Celsius setpoint to the range the device accepts."""

    return max(DEVICE_MIN_CELSIUS, min(celsius, DEVICE_MAX_CELSIUS))


@dataclass(frozen=True, slots=True)
class TargetRange:
    """Bounds of the target temperature, expressed in the display unit."""

    min: float
    max: float


def target_range_for(unit: TemperatureUnit) -> TargetRange:
    """Return the device range converted to ``unit``."""

    return TargetRange(
        min=celsius_to_display(DEVICE_MIN_CELSIUS, unit),
        max=celsius_to_display(DEVICE_MAX_CELSIUS, unit),
    )
