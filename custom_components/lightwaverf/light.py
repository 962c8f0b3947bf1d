import logging

from homeassistant.components.light import ATTR_BRIGHTNESS, ColorMode, LightEntity
from homeassistant.exceptions import HomeAssistantError

from .const import DOMAIN
from .device_abstraction.comms.results import CommandFailedError
from .device_abstraction.devices import LightwaveDimmer
from .entity import LightwaveEntity

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass, config_entry, async_add_entities):
    hub = hass.data[DOMAIN][config_entry.entry_id]
    async_add_entities(
        LightwaveLightEntity(device) for device in hub.devices_of_type(LightwaveDimmer)
    )


class LightwaveLightEntity(LightwaveEntity, LightEntity):
    _attr_color_mode = ColorMode.BRIGHTNESS
    _attr_supported_color_modes = {ColorMode.BRIGHTNESS}

    @property
    def is_on(self):
        return self._device.is_on

    @property
    def brightness(self):
        return self._device.state.get("brightness") or None

    async def async_turn_on(self, **kwargs):
        try:
            if ATTR_BRIGHTNESS in kwargs:
                await self._device.set_brightness(kwargs[ATTR_BRIGHTNESS])
            else:
                await self._device.turn_on()
        except CommandFailedError as e:
            raise HomeAssistantError(f"Failed to turn on {self.name}: {e}") from e

    async def async_turn_off(self, **kwargs):
        try:
            await self._device.turn_off()
        except CommandFailedError as e:
            raise HomeAssistantError(f"Failed to turn off {self.name}: {e}") from e
