import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .results import CommandResult, DuplicateTransactionError

_LOGGER = logging.getLogger(__name__)

Completion = Callable[[CommandResult], None]


@dataclass
class PendingTransaction:
    transaction_id: int
    submitted_at: float
    completion: Completion
    timer: Optional[asyncio.TimerHandle] = None


class TransactionRegistry:
    """Tracks commands awaiting a response from the Link.

    Every registered completion is invoked exactly once, either by
    ``resolve`` when the matching response arrives or by ``expire`` when
    its timeout fires. All methods must run on the event loop thread.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._pending: Dict[int, PendingTransaction] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def __len__(self) -> int:
        return len(self._pending)

    def is_pending(self, transaction_id: int) -> bool:
        return transaction_id in self._pending

    def register(self, transaction_id: int, completion: Completion, timeout: float):
        """Track a sent command and schedule its expiry."""
        if transaction_id in self._pending:
            raise DuplicateTransactionError(
                f"Transaction {transaction_id} is already pending"
            )

        entry = PendingTransaction(
            transaction_id=transaction_id,
            submitted_at=self.loop.time(),
            completion=completion,
        )
        entry.timer = self.loop.call_later(timeout, self.expire, transaction_id)
        self._pending[transaction_id] = entry
        _LOGGER.debug("Registered transaction %d (timeout %.2fs)", transaction_id, timeout)

    def resolve(self, transaction_id: int, result: CommandResult) -> bool:
        """Deliver a response. Returns False for late or unknown ids."""
        entry = self._pending.pop(transaction_id, None)
        if entry is None:
            _LOGGER.warning("No pending transaction %d, ignoring response", transaction_id)
            return False

        if entry.timer is not None:
            entry.timer.cancel()

        _LOGGER.debug(
            "Transaction %d resolved after %.3fs: %s",
            transaction_id,
            self.loop.time() - entry.submitted_at,
            result.status.value,
        )
        self._deliver(entry, result)
        return True

    def expire(self, transaction_id: int):
        """Fail a transaction whose response never arrived."""
        entry = self._pending.pop(transaction_id, None)
        if entry is None:
            return

        if entry.timer is not None:
            entry.timer.cancel()

        _LOGGER.warning("Transaction %d expired without a response", transaction_id)
        self._deliver(entry, CommandResult.timeout(transaction_id))

    def close(self):
        """Expire everything still pending."""
        for transaction_id in list(self._pending):
            self.expire(transaction_id)

    @staticmethod
    def _deliver(entry: PendingTransaction, result: CommandResult):
        try:
            entry.completion(result)
        except Exception as e:
            _LOGGER.exception(
                "Error in completion for transaction %d: %s", entry.transaction_id, e
            )
