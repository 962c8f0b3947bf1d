import logging

from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.exceptions import HomeAssistantError

from .const import DOMAIN
from .device_abstraction.comms.results import CommandFailedError
from .device_abstraction.devices import LightwaveSwitch
from .entity import LightwaveEntity

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass, config_entry, async_add_entities):
    """Set up LightwaveRF switches from a config entry."""
    hub = hass.data[DOMAIN][config_entry.entry_id]
    async_add_entities(
        LightwaveSwitchEntity(device) for device in hub.devices_of_type(LightwaveSwitch)
    )


class LightwaveSwitchEntity(LightwaveEntity, SwitchEntity):
    """Representation of a LightwaveRF on/off device."""

    _attr_device_class = SwitchDeviceClass.SWITCH

    @property
    def is_on(self) -> bool:
        return self._device.is_on

    async def async_turn_on(self, **kwargs):
        try:
            await self._device.turn_on()
        except CommandFailedError as e:
            raise HomeAssistantError(f"Failed to turn on {self.name}: {e}") from e

    async def async_turn_off(self, **kwargs):
        try:
            await self._device.turn_off()
        except CommandFailedError as e:
            raise HomeAssistantError(f"Failed to turn off {self.name}: {e}") from e
