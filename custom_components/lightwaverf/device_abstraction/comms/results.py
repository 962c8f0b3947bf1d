"""Result and error types shared by the LightwaveRF comms layer."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LightwaveError(Exception):
    """Base class for LightwaveRF errors."""


class DuplicateTransactionError(LightwaveError):
    """A transaction id was registered while still pending."""


class InvalidAddressError(LightwaveError, ValueError):
    """A room or device id is not a positive integer."""


class TransmitterNotStartedError(LightwaveError):
    """A command was sent before the UDP endpoints were opened."""


class InventoryError(LightwaveError):
    """The device inventory could not be loaded."""


class CloudAuthError(InventoryError):
    """The LightwaveRF cloud rejected or failed the login flow."""


class CommandFailedError(LightwaveError):
    """A command finished without an OK result."""

    def __init__(self, result: "CommandResult"):
        super().__init__(f"Command failed ({result.status.value}): {result.error}")
        self.result = result


class ResultStatus(Enum):
    OK = "ok"
    PROTOCOL_ERROR = "protocol_error"
    TIMEOUT = "timeout"
    DROPPED = "dropped"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class Response:
    """A datagram decoded from the Link."""

    transaction_id: int
    content: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def structured(self) -> bool:
        return bool(self.fields)


@dataclass(frozen=True)
class DecodeFailed:
    """A datagram that could not be decoded."""

    reason: str
    raw: bytes = b""


@dataclass(frozen=True)
class CommandResult:
    """Terminal outcome delivered to the caller of a command."""

    status: ResultStatus
    transaction_id: Optional[int] = None
    content: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.OK

    @classmethod
    def from_response(cls, response: Response) -> "CommandResult":
        return cls(
            status=ResultStatus.PROTOCOL_ERROR if response.error else ResultStatus.OK,
            transaction_id=response.transaction_id,
            content=response.content,
            fields=dict(response.fields),
            error=response.error,
        )

    @classmethod
    def timeout(cls, transaction_id: int) -> "CommandResult":
        return cls(
            status=ResultStatus.TIMEOUT,
            transaction_id=transaction_id,
            error="ERR:EXPIRED",
        )


@dataclass(frozen=True)
class EnergyReading:
    """Energy monitor values reported by the Link."""

    current: int
    max: int
    today: int
    yesterday: int
