import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Optional

from .registry import TransactionRegistry
from .results import CommandResult, LightwaveError, ResultStatus
from .udp_protocol import LightwaveTransmitter

_LOGGER = logging.getLogger(__name__)

DEFAULT_PACING_INTERVAL = 1.0
DEFAULT_TIMEOUT = 1.0
DEFAULT_CAPACITY = 100


@dataclass
class QueuedCommand:
    command: str
    future: asyncio.Future


class DispatchQueue:
    """Paces commands to the Link, one send per pacing interval.

    The Link drops commands sent back to back, so submissions wait in a
    bounded FIFO queue. Only sends are throttled; responses to earlier
    commands may still be outstanding when the next one goes out.
    """

    def __init__(
        self,
        transmitter: LightwaveTransmitter,
        registry: TransactionRegistry,
        pacing_interval: float = DEFAULT_PACING_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        capacity: int = DEFAULT_CAPACITY,
    ):
        self.transmitter = transmitter
        self.registry = registry
        self.pacing_interval = pacing_interval
        self.timeout = timeout
        self.capacity = capacity
        self.ready = True
        self._queue: Deque[QueuedCommand] = deque()
        self._pacing_handle: Optional[asyncio.TimerHandle] = None
        self._overflow_listeners: List[Callable[[str], None]] = []
        self.stats: Dict[str, int] = {"submitted": 0, "dispatched": 0, "dropped": 0}

    def __len__(self) -> int:
        return len(self._queue)

    def add_overflow_listener(self, callback: Callable[[str], None]):
        """Be told about commands dropped because the queue was full."""
        self._overflow_listeners.append(callback)

    def remove_overflow_listener(self, callback: Callable[[str], None]):
        if callback in self._overflow_listeners:
            self._overflow_listeners.remove(callback)

    def submit(self, command: str) -> asyncio.Future:
        """Queue a command; the future resolves to its CommandResult."""
        future = asyncio.get_running_loop().create_future()
        self.stats["submitted"] += 1

        if len(self._queue) >= self.capacity:
            self._drop(command, future)
            return future

        self._queue.append(QueuedCommand(command, future))
        self._process()
        return future

    def stop(self):
        """Cancel pacing and release every caller still waiting in the queue."""
        if self._pacing_handle is not None:
            self._pacing_handle.cancel()
            self._pacing_handle = None
        self.ready = True

        while self._queue:
            queued = self._queue.popleft()
            _complete(queued.future, CommandResult(ResultStatus.DROPPED, error="queue stopped"))

    def _process(self):
        if not self._queue or not self.ready:
            return

        self.ready = False
        queued = self._queue.popleft()
        self._dispatch(queued)
        self._pacing_handle = asyncio.get_running_loop().call_later(
            self.pacing_interval, self._release
        )

    def _release(self):
        self._pacing_handle = None
        self.ready = True
        self._process()

    def _dispatch(self, queued: QueuedCommand):
        try:
            transaction_id = self.transmitter.send(queued.command)
        except (LightwaveError, OSError) as e:
            _LOGGER.warning("Failed to send %r: %s", queued.command, e)
            _complete(queued.future, CommandResult(ResultStatus.SEND_FAILED, error=str(e)))
            return

        self.stats["dispatched"] += 1
        self.registry.register(
            transaction_id,
            lambda result: _complete(queued.future, result),
            self.timeout,
        )

    def _drop(self, command: str, future: asyncio.Future):
        self.stats["dropped"] += 1
        _LOGGER.warning(
            "Command queue full (%d entries), dropping %r", self.capacity, command
        )
        _complete(future, CommandResult(ResultStatus.DROPPED, error="queue full"))

        for callback in self._overflow_listeners:
            try:
                callback(command)
            except Exception as e:
                _LOGGER.exception("Error in overflow listener: %s", e)


def _complete(future: asyncio.Future, result: CommandResult):
    if not future.done():
        future.set_result(result)
