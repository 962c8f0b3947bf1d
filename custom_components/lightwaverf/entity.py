from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity import Entity

from .const import DOMAIN
from .device_abstraction.devices import LightwaveDevice


class LightwaveEntity(Entity):
    """Common base for LightwaveRF entities.

    The Link reports no device state, so entities show the last state
    the Link accepted a command for.
    """

    _attr_should_poll = False
    _attr_assumed_state = True

    def __init__(self, device: LightwaveDevice):
        self._device = device
        self._attr_unique_id = f"{DOMAIN}_{device.unique_id}"
        self._attr_name = device.name
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, device.unique_id)},
            name=device.name,
            manufacturer="LightwaveRF",
            suggested_area=device.room_name,
        )

    async def async_added_to_hass(self):
        """Register callbacks when entity is added."""
        self._device.register_callback(self._update_callback)

    async def async_will_remove_from_hass(self):
        """Unregister callbacks when entity is removed."""
        self._device.remove_callback(self._update_callback)

    def _update_callback(self):
        self.async_write_ha_state()

    @property
    def extra_state_attributes(self):
        return {
            "room_id": self._device.room_id,
            "device_id": self._device.device_id,
        }
