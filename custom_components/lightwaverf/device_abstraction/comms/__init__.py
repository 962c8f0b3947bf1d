"""Communication layer for the LightwaveRF integration."""
from .decoder import decode_response
from .dispatch_queue import DispatchQueue, QueuedCommand
from .registry import PendingTransaction, TransactionRegistry
from .results import (
    CommandResult,
    DecodeFailed,
    DuplicateTransactionError,
    EnergyReading,
    LightwaveError,
    Response,
    ResultStatus,
)
from .udp_protocol import AddressMode, BridgeAddress, LightwaveTransmitter

__all__ = [
    "AddressMode",
    "BridgeAddress",
    "CommandResult",
    "DecodeFailed",
    "DispatchQueue",
    "DuplicateTransactionError",
    "EnergyReading",
    "LightwaveError",
    "LightwaveTransmitter",
    "PendingTransaction",
    "QueuedCommand",
    "Response",
    "ResultStatus",
    "TransactionRegistry",
    "decode_response",
]
