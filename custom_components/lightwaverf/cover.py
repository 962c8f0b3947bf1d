import logging

from homeassistant.components.cover import CoverEntity, CoverEntityFeature
from homeassistant.exceptions import HomeAssistantError

from .const import DOMAIN
from .device_abstraction.comms.results import CommandFailedError
from .device_abstraction.devices import LightwaveCover
from .entity import LightwaveEntity

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass, config_entry, async_add_entities):
    hub = hass.data[DOMAIN][config_entry.entry_id]
    async_add_entities(
        LightwaveCoverEntity(device) for device in hub.devices_of_type(LightwaveCover)
    )


class LightwaveCoverEntity(LightwaveEntity, CoverEntity):
    """A LightwaveRF open/close relay. Position is never reported back."""

    _attr_supported_features = (
        CoverEntityFeature.OPEN | CoverEntityFeature.CLOSE | CoverEntityFeature.STOP
    )

    @property
    def is_closed(self):
        # Unknown: the relay gives no position feedback
        return None

    @property
    def is_opening(self) -> bool:
        return self._device.state.get("state") == "opening"

    @property
    def is_closing(self) -> bool:
        return self._device.state.get("state") == "closing"

    async def async_open_cover(self, **kwargs):
        await self._call(self._device.open, "open")

    async def async_close_cover(self, **kwargs):
        await self._call(self._device.close, "close")

    async def async_stop_cover(self, **kwargs):
        await self._call(self._device.stop, "stop")

    async def _call(self, action, verb: str):
        try:
            await action()
        except CommandFailedError as e:
            raise HomeAssistantError(f"Failed to {verb} {self.name}: {e}") from e
