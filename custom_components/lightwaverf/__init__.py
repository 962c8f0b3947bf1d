import logging
from typing import Any, Dict

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_HOST
from homeassistant.core import HomeAssistant, ServiceCall, SupportsResponse
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from .const import (
    CONF_CLOUD_HOST,
    CONF_COMMAND_TIMEOUT,
    CONF_EMAIL,
    CONF_FILE,
    CONF_PACING_INTERVAL,
    CONF_PIN,
    DEFAULT_CLOUD_HOST,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_PACING_INTERVAL,
    DOMAIN,
    PLATFORMS,
)
from .device_abstraction.comms.results import CommandFailedError, LightwaveError
from .hub import LightwaveHub

_LOGGER = logging.getLogger(__name__)

LINK_SCHEMA = vol.Schema({
    vol.Optional(CONF_HOST, default=DEFAULT_HOST): cv.string,
    vol.Optional(CONF_FILE): cv.string,
    vol.Optional(CONF_EMAIL): cv.string,
    vol.Optional(CONF_PIN): cv.string,
    vol.Optional(CONF_CLOUD_HOST, default=DEFAULT_CLOUD_HOST): cv.url,
    vol.Optional(CONF_PACING_INTERVAL, default=DEFAULT_PACING_INTERVAL): vol.All(
        vol.Coerce(float), vol.Range(min=0.1, max=10.0)
    ),
    vol.Optional(CONF_COMMAND_TIMEOUT, default=DEFAULT_COMMAND_TIMEOUT): vol.All(
        vol.Coerce(float), vol.Range(min=0.1, max=30.0)
    ),
})

# Configuration schema for YAML-based configuration
CONFIG_SCHEMA = vol.Schema({DOMAIN: LINK_SCHEMA}, extra=vol.ALLOW_EXTRA)

SERVICE_REGISTER = "register"
SERVICE_REQUEST_ENERGY = "request_energy"
SERVICE_TURN_ROOM_OFF = "turn_room_off"
SERVICE_RESET_BRIDGE_ADDRESS = "reset_bridge_address"

ROOM_SCHEMA = vol.Schema({vol.Required("room_id"): cv.positive_int})


async def async_setup(hass: HomeAssistant, config: Dict[str, Any]) -> bool:
    """Set up the LightwaveRF component from YAML configuration."""
    hass.data.setdefault(DOMAIN, {})
    _register_services(hass)

    if DOMAIN not in config:
        return True

    # Check if we've already imported the config
    if not any(entry.source == config_entries.SOURCE_IMPORT
               for entry in hass.config_entries.async_entries(DOMAIN)):
        hass.async_create_task(
            hass.config_entries.flow.async_init(
                DOMAIN,
                context={"source": config_entries.SOURCE_IMPORT},
                data=config[DOMAIN],
            )
        )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up LightwaveRF from a config entry."""
    hub = LightwaveHub(hass, {**entry.data, **entry.options})

    try:
        await hub.start()
    except OSError as e:
        _LOGGER.error("Failed to open LightwaveRF sockets: %s", e)
        await hub.stop()
        return False

    try:
        try:
            await hub.load_devices()
        except LightwaveError as e:
            _LOGGER.error("Failed to load LightwaveRF devices: %s", e)

        hass.data.setdefault(DOMAIN, {})[entry.entry_id] = hub
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    except Exception:
        # Sockets and timers are already running; release them before failing
        hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        await hub.stop()
        raise

    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok and entry.entry_id in hass.data.get(DOMAIN, {}):
        hub = hass.data[DOMAIN].pop(entry.entry_id)
        await hub.stop()

    return unload_ok


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry):
    await hass.config_entries.async_reload(entry.entry_id)


def _register_services(hass: HomeAssistant):
    """Register LightwaveRF services."""

    def hubs():
        found = list(hass.data.get(DOMAIN, {}).values())
        if not found:
            raise HomeAssistantError("No LightwaveRF Link is configured")
        return found

    async def handle_register(call: ServiceCall):
        for hub in hubs():
            result = await hub.controller.register()
            _LOGGER.info(
                "Registration request sent to %s (%s); confirm it on the Link",
                hub.controller.host,
                result.status.value,
            )

    async def handle_request_energy(call: ServiceCall):
        try:
            reading = await hubs()[0].controller.read_energy()
        except (CommandFailedError, ValueError) as e:
            raise HomeAssistantError(f"Energy query failed: {e}") from e
        return {
            "current": reading.current,
            "max": reading.max,
            "today": reading.today,
            "yesterday": reading.yesterday,
        }

    async def handle_turn_room_off(call: ServiceCall):
        room_id = call.data["room_id"]
        for hub in hubs():
            result = await hub.controller.turn_room_off(room_id)
            if not result.ok:
                raise HomeAssistantError(f"Room {room_id} off failed: {result.error}")

    async def handle_reset_bridge_address(call: ServiceCall):
        for hub in hubs():
            hub.controller.transmitter.reset_address()

    hass.services.async_register(DOMAIN, SERVICE_REGISTER, handle_register)
    hass.services.async_register(
        DOMAIN,
        SERVICE_REQUEST_ENERGY,
        handle_request_energy,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        DOMAIN, SERVICE_TURN_ROOM_OFF, handle_turn_room_off, schema=ROOM_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_RESET_BRIDGE_ADDRESS, handle_reset_bridge_address
    )
