"""Parsed view of a HUUM status payload."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .const import STATUS_CODE_HEATING
from .utils import coerce_int, float_or_none


class ParseError(ValueError):
    """A status field is missing or not numeric."""


@dataclass(frozen=True, slots=True)
class RemoteStatus:
    """One status snapshot; numeric fields are kept raw until read."""

    temperature: Any = None
    target_temperature: Any = None
    status_code: Any = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> RemoteStatus:
        """Build a snapshot from the JSON body of ``GET status``."""

        return cls(
            temperature=payload.get("temperature"),
            target_temperature=payload.get("targetTemperature"),
            status_code=payload.get("statusCode"),
        )

    def temperature_celsius(self) -> float:
        """Return the measured temperature in Celsius."""

        return _parse_celsius("temperature", self.temperature)

    def target_temperature_celsius(self) -> float:
        """Return the remote setpoint in Celsius (unclamped)."""

        return _parse_celsius("targetTemperature", self.target_temperature)

    @property
    def is_heating(self) -> bool:
        """Return True when the sauna reports it is actively heating."""

        return coerce_int(self.status_code) == STATUS_CODE_HEATING


def _parse_celsius(field_name: str, raw: Any) -> float:
    value = float_or_none(raw)
    if value is None:
        raise ParseError(f"Field {field_name!r} is not numeric: {raw!r}")
    return value
