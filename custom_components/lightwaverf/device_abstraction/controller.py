import asyncio
import logging
from typing import Optional

from .comms.dispatch_queue import (
    DEFAULT_CAPACITY,
    DEFAULT_PACING_INTERVAL,
    DEFAULT_TIMEOUT,
    DispatchQueue,
)
from .comms.registry import TransactionRegistry
from .comms.results import (
    CommandFailedError,
    CommandResult,
    EnergyReading,
    InvalidAddressError,
)
from .comms.udp_protocol import LightwaveTransmitter

_LOGGER = logging.getLogger(__name__)

ENERGY_PREFIX = "?W="
MAX_DIM_LEVEL = 32


def _check_id(kind: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidAddressError(f"{kind} id must be a positive integer, got {value!r}")
    return value


def dim_level(percentage) -> int:
    """Convert a 0-100 percentage to the Link's 0-32 dim scale."""
    if isinstance(percentage, bool) or not 0 <= percentage <= 100:
        raise ValueError(f"Dim percentage must be between 0 and 100, got {percentage!r}")
    return int(percentage * MAX_DIM_LEVEL / 100)


def parse_energy(content: str) -> EnergyReading:
    """Parse an ``?W=current,max,today,yesterday`` energy report."""
    if not content or not content.startswith(ENERGY_PREFIX):
        raise ValueError(f"Not an energy report: {content!r}")
    values = content[len(ENERGY_PREFIX):].split(",")
    if len(values) < 4:
        raise ValueError(f"Incomplete energy report: {content!r}")
    current, maximum, today, yesterday = (int(v) for v in values[:4])
    return EnergyReading(current=current, max=maximum, today=today, yesterday=yesterday)


class LightwaveController:
    """Command interface to a LightwaveRF Wi-Fi Link.

    Every command method returns immediately with a future that resolves
    to the CommandResult once the Link answers or the command times out.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        pacing_interval: float = DEFAULT_PACING_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        capacity: int = DEFAULT_CAPACITY,
    ):
        self.registry = TransactionRegistry()
        self.transmitter = LightwaveTransmitter(self.registry, host)
        self.queue = DispatchQueue(
            self.transmitter,
            self.registry,
            pacing_interval=pacing_interval,
            timeout=timeout,
            capacity=capacity,
        )

    @property
    def host(self) -> str:
        return self.transmitter.address.host

    async def start(self):
        await self.transmitter.start()

    async def stop(self):
        self.queue.stop()
        self.registry.close()
        await self.transmitter.stop()

    def send(self, command: str) -> asyncio.Future:
        """Queue a raw protocol command."""
        _LOGGER.debug("Queueing command %s", command)
        return self.queue.submit(command)

    def announce(self) -> asyncio.Future:
        return self.send("@H")

    def register(self) -> asyncio.Future:
        """Ask the Link to pair with this client; confirm on the Link itself."""
        return self.send("!R1Fa")

    def turn_device_on(self, room_id: int, device_id: int) -> asyncio.Future:
        return self._device_command(room_id, device_id, "F1")

    def turn_device_off(self, room_id: int, device_id: int) -> asyncio.Future:
        return self._device_command(room_id, device_id, "F0")

    def open_device(self, room_id: int, device_id: int) -> asyncio.Future:
        return self._device_command(room_id, device_id, "F>")

    def close_device(self, room_id: int, device_id: int) -> asyncio.Future:
        return self._device_command(room_id, device_id, "F<")

    def stop_device(self, room_id: int, device_id: int) -> asyncio.Future:
        return self._device_command(room_id, device_id, "F^")

    def turn_room_off(self, room_id: int) -> asyncio.Future:
        return self.send(f"!R{_check_id('Room', room_id)}Fa")

    def set_device_dim(self, room_id: int, device_id: int, percentage) -> asyncio.Future:
        """Dim a device; a level that rounds down to zero turns it off."""
        level = dim_level(percentage)
        if level == 0:
            return self.turn_device_off(room_id, device_id)
        return self._device_command(room_id, device_id, f"FdP{level}")

    def request_energy(self) -> asyncio.Future:
        return self.send("@?")

    async def read_energy(self) -> EnergyReading:
        """Query the energy monitor and parse its report."""
        result: CommandResult = await self.request_energy()
        if not result.ok:
            raise CommandFailedError(result)
        return parse_energy(result.content)

    def _device_command(self, room_id: int, device_id: int, function: str) -> asyncio.Future:
        room_id = _check_id("Room", room_id)
        device_id = _check_id("Device", device_id)
        return self.send(f"!R{room_id}D{device_id}{function}|")
