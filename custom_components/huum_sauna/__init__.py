"""Home Assistant entry point for the HUUM sauna integration."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import TYPE_CHECKING, Any

from .api import HuumClient
from .bridge import SaunaBridge
from .config import ConfigurationError, DeviceConfig, device_config_from_mapping
from .const import DOMAIN
from .host import ThermostatService
from .sanitize import mask_identifier

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)

PLATFORMS = ["climate"]


def create_client(hass: HomeAssistant, config: DeviceConfig) -> HuumClient:
    """Return a HUUM client bound to Home Assistant's shared session."""

    from homeassistant.helpers import aiohttp_client

    session = aiohttp_client.async_get_clientsession(hass)
    return HuumClient(session, config.username, config.password)


def entry_config_data(entry: ConfigEntry) -> dict[str, Any]:
    """Merge entry data with options (options win)."""

    data: dict[str, Any] = dict(entry.data)
    options: Mapping[str, Any] = entry.options or {}
    data.update(options)
    return data


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Build the sync bridge for the configured sauna."""

    try:
        config = device_config_from_mapping(entry_config_data(entry))
    except ConfigurationError as err:
        _LOGGER.error("%s", err)
        return False

    client = create_client(hass, config)
    service = ThermostatService()
    bridge = SaunaBridge(config, client, service)

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "config": config,
        "client": client,
        "service": service,
        "bridge": bridge,
    }
    _LOGGER.info(
        "Initialising sauna for %s (unit=%s, poll every %ss)",
        mask_identifier(config.username),
        config.temperature_unit.value,
        config.poll_interval,
    )

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload platforms and stop polling."""

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unload_ok:
        return False

    record = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if record is not None:
        await record["bridge"].async_stop()
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry so option changes rebuild the bridge."""

    await hass.config_entries.async_reload(entry.entry_id)
