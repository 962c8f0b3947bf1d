import logging
from typing import Any, Callable, Dict, Optional, Set

from .comms.results import CommandFailedError, CommandResult
from .controller import LightwaveController, dim_level

_LOGGER = logging.getLogger(__name__)


class LightwaveDevice:
    """Base class for all LightwaveRF devices."""

    def __init__(
        self,
        controller: LightwaveController,
        room_id: int,
        device_id: int,
        name: Optional[str] = None,
        room_name: Optional[str] = None,
    ):
        """
        Initialize a LightwaveRF device.

        :param controller: Controller used to reach the Link
        :param room_id: Room number as paired on the Link
        :param device_id: Device number within the room
        :param name: Friendly name (defaults to room and device number)
        """
        self.controller = controller
        self.room_id = room_id
        self.device_id = device_id
        self.room_name = room_name
        self.name = name or f"Room {room_id} Device {device_id}"
        self.state: Dict[str, Any] = {"state": "off"}
        self._callbacks: Set[Callable] = set()

    @property
    def unique_id(self) -> str:
        return f"R{self.room_id}D{self.device_id}"

    @property
    def is_on(self) -> bool:
        return self.state.get("state") == "on"

    def register_callback(self, callback: Callable):
        """Register a callback to be called when state changes."""
        self._callbacks.add(callback)

    def remove_callback(self, callback: Callable):
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def notify_callbacks(self):
        for callback in self._callbacks:
            callback()

    def update_state(self, new_state: dict):
        """Update device state and notify listeners."""
        changed = False
        for key, value in new_state.items():
            if self.state.get(key) != value:
                self.state[key] = value
                changed = True

        if changed:
            _LOGGER.debug("Device %s state updated: %s", self.unique_id, self.state)
            self.notify_callbacks()

    async def _run(self, future, new_state: dict) -> CommandResult:
        """Await a command and apply the assumed state once the Link accepts it."""
        result: CommandResult = await future
        if not result.ok:
            _LOGGER.warning(
                "Command for %s failed (%s): %s",
                self.unique_id,
                result.status.value,
                result.error,
            )
            raise CommandFailedError(result)
        self.update_state(new_state)
        return result


class LightwaveSwitch(LightwaveDevice):
    """An on/off LightwaveRF socket or relay."""

    async def turn_on(self):
        await self._run(
            self.controller.turn_device_on(self.room_id, self.device_id), {"state": "on"}
        )

    async def turn_off(self):
        await self._run(
            self.controller.turn_device_off(self.room_id, self.device_id), {"state": "off"}
        )


class LightwaveDimmer(LightwaveSwitch):
    """A LightwaveRF dimmer; brightness uses Home Assistant's 0-255 scale."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.state["brightness"] = 0

    async def set_brightness(self, brightness: int):
        brightness = max(0, min(255, int(brightness)))
        percentage = round(brightness * 100 / 255)
        future = self.controller.set_device_dim(self.room_id, self.device_id, percentage)
        if dim_level(percentage) == 0:
            await self._run(future, {"state": "off"})
        else:
            await self._run(future, {"state": "on", "brightness": brightness})


class LightwaveCover(LightwaveDevice):
    """A motorised blind, curtain or awning on an open/close relay."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.state["state"] = None

    async def open(self):
        await self._run(
            self.controller.open_device(self.room_id, self.device_id), {"state": "opening"}
        )

    async def close(self):
        await self._run(
            self.controller.close_device(self.room_id, self.device_id), {"state": "closing"}
        )

    async def stop(self):
        await self._run(
            self.controller.stop_device(self.room_id, self.device_id), {"state": "stopped"}
        )
