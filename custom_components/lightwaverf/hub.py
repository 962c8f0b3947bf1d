import logging
from typing import Any, Dict, List, Mapping, Optional

from homeassistant.const import CONF_HOST
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.dispatcher import async_dispatcher_send

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
    SIGNAL_QUEUE_OVERFLOW,
)
from .device_abstraction.controller import LightwaveController
from .device_abstraction.devices import (
    LightwaveCover,
    LightwaveDevice,
    LightwaveDimmer,
    LightwaveSwitch,
)
from .inventory import (
    TYPE_DIMMER,
    TYPE_OPEN_CLOSE,
    DeviceDescriptor,
    LightwaveCloudClient,
    load_file_inventory,
)

_LOGGER = logging.getLogger(__name__)

DEVICE_CLASSES = {
    TYPE_DIMMER: LightwaveDimmer,
    TYPE_OPEN_CLOSE: LightwaveCover,
}


class LightwaveHub:
    """Hub for LightwaveRF integration."""

    def __init__(self, hass: HomeAssistant, config: Mapping[str, Any]):
        self.hass = hass
        self.config = dict(config)

        self.controller = LightwaveController(
            host=self.config.get(CONF_HOST, DEFAULT_HOST),
            pacing_interval=self.config.get(CONF_PACING_INTERVAL, DEFAULT_PACING_INTERVAL),
            timeout=self.config.get(CONF_COMMAND_TIMEOUT, DEFAULT_COMMAND_TIMEOUT),
        )
        self.controller.queue.add_overflow_listener(self._handle_overflow)
        self.devices: Dict[str, LightwaveDevice] = {}

    async def start(self):
        """Open the UDP sockets and greet the Link."""
        await self.controller.start()
        result = await self.controller.announce()
        if result.ok:
            _LOGGER.info("LightwaveRF Link answered from %s", self.controller.host)
        else:
            _LOGGER.warning(
                "No answer from LightwaveRF Link at %s (%s); commands will keep "
                "going to that address",
                self.controller.host,
                result.error,
            )
            if result.error == "nonRegistered":
                _LOGGER.warning("Call the lightwaverf.register service to pair with the Link")

    async def stop(self):
        self.controller.queue.remove_overflow_listener(self._handle_overflow)
        await self.controller.stop()
        _LOGGER.info("LightwaveRF hub stopped")

    async def load_devices(self):
        """Build devices from the configured inventory source."""
        descriptors = await self._load_inventory()
        for descriptor in descriptors:
            self.add_device(self._create_device(descriptor))
        _LOGGER.info("LightwaveRF hub set up with %d devices", len(self.devices))

    async def _load_inventory(self) -> List[DeviceDescriptor]:
        if path := self.config.get(CONF_FILE):
            return await self.hass.async_add_executor_job(load_file_inventory, path)

        email = self.config.get(CONF_EMAIL)
        pin = self.config.get(CONF_PIN)
        if email and pin:
            client = LightwaveCloudClient(
                async_get_clientsession(self.hass),
                self.config.get(CONF_CLOUD_HOST, DEFAULT_CLOUD_HOST),
            )
            return await client.fetch_devices(email, pin)

        _LOGGER.warning(
            "No device file or cloud email/PIN configured; no devices will be created"
        )
        return []

    def _create_device(self, descriptor: DeviceDescriptor) -> LightwaveDevice:
        device_class = DEVICE_CLASSES.get(descriptor.device_type, LightwaveSwitch)
        return device_class(
            self.controller,
            descriptor.room_id,
            descriptor.device_id,
            name=descriptor.device_name or None,
            room_name=descriptor.room_name or None,
        )

    def get_device(self, unique_id: str) -> Optional[LightwaveDevice]:
        return self.devices.get(unique_id)

    def add_device(self, device: LightwaveDevice):
        if device.unique_id in self.devices:
            _LOGGER.warning("Duplicate device %s (%s) ignored", device.unique_id, device.name)
            return
        self.devices[device.unique_id] = device
        _LOGGER.debug("Added device: %s (%s)", device.unique_id, device.name)

    def devices_of_type(self, device_class) -> List[LightwaveDevice]:
        return [d for d in self.devices.values() if type(d) is device_class]

    @callback
    def _handle_overflow(self, command: str):
        async_dispatcher_send(self.hass, SIGNAL_QUEUE_OVERFLOW, command)
