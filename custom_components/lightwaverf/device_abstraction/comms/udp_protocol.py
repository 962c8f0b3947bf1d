import asyncio
import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .decoder import decode_response
from .registry import TransactionRegistry
from .results import CommandResult, DecodeFailed, TransmitterNotStartedError

_LOGGER = logging.getLogger(__name__)

BROADCAST_ADDRESS = "255.255.255.255"
SEND_PORT = 9760
RECEIVE_PORT = 9761


class AddressMode(Enum):
    BROADCAST_DISCOVERY = "broadcast_discovery"
    UNICAST_LOCKED = "unicast_locked"


@dataclass
class BridgeAddress:
    """Where commands for the Link are sent."""

    host: str = BROADCAST_ADDRESS
    mode: AddressMode = AddressMode.BROADCAST_DISCOVERY

    @classmethod
    def from_host(cls, host: Optional[str]) -> "BridgeAddress":
        if not host or host == BROADCAST_ADDRESS:
            return cls()
        return cls(host, AddressMode.UNICAST_LOCKED)

    @property
    def discovering(self) -> bool:
        return self.mode is AddressMode.BROADCAST_DISCOVERY


class LightwaveTransmitter:
    """Owns the UDP sockets used to talk to a LightwaveRF Link.

    Commands go out from an ephemeral port to port 9760 of the Link;
    replies come back to port 9761. Until the Link has answered once
    commands are broadcast, after which the transmitter locks onto the
    address that answered and ignores every other sender.
    """

    def __init__(
        self,
        registry: TransactionRegistry,
        host: Optional[str] = None,
        send_port: int = SEND_PORT,
        receive_port: int = RECEIVE_PORT,
    ):
        self.registry = registry
        self.address = BridgeAddress.from_host(host)
        self.send_port = send_port
        self.receive_port = receive_port
        self.send_transport = None
        self.receive_transport = None
        self._next_id = 0
        self.stats: Dict[str, int] = {
            "sent": 0,
            "received": 0,
            "malformed": 0,
            "unmatched": 0,
            "mismatched": 0,
        }

    @property
    def started(self) -> bool:
        return self.send_transport is not None

    async def start(self):
        """Open the send and receive endpoints."""
        loop = asyncio.get_running_loop()

        send_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        send_sock.setsockopt(
            socket.SOL_SOCKET, socket.SO_BROADCAST, 1 if self.address.discovering else 0
        )
        send_sock.bind(("", 0))
        self.send_transport, _ = await loop.create_datagram_endpoint(
            lambda: UDPProtocol(self.handle_datagram, "send"),
            sock=send_sock,
        )

        receive_sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        receive_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        receive_sock.bind(("", self.receive_port))
        self.receive_transport, _ = await loop.create_datagram_endpoint(
            lambda: UDPProtocol(self.handle_datagram, "receive"),
            sock=receive_sock,
        )
        _LOGGER.info(
            "UDP transmitter started, listening on port %d, sending to %s:%d",
            self.receive_port,
            self.address.host,
            self.send_port,
        )

    async def stop(self):
        """Close both endpoints."""
        for transport in (self.send_transport, self.receive_transport):
            if transport:
                transport.close()
        self.send_transport = None
        self.receive_transport = None
        _LOGGER.debug("UDP transmitter stopped")

    def send(self, command: str) -> int:
        """Send a command and return the transaction id it was tagged with."""
        if self.send_transport is None:
            raise TransmitterNotStartedError("UDP transmitter is not started")

        transaction_id = self._allocate_id()
        message = f"{transaction_id},{command}"
        self.send_transport.sendto(
            message.encode("utf-8"), (self.address.host, self.send_port)
        )
        self.stats["sent"] += 1
        _LOGGER.debug("Sent to %s: %s", self.address.host, message)
        return transaction_id

    def handle_datagram(self, data: bytes, addr: tuple):
        """Handle a datagram from either socket."""
        sender = addr[0]
        self.stats["received"] += 1

        if self.address.discovering:
            self._lock_address(sender)

        if sender != self.address.host:
            self.stats["mismatched"] += 1
            _LOGGER.debug(
                "Ignoring datagram from %s, Link is at %s", sender, self.address.host
            )
            return

        response = decode_response(data)
        if isinstance(response, DecodeFailed):
            self.stats["malformed"] += 1
            _LOGGER.warning(
                "Received malformed response from %s (%s): %r",
                sender,
                response.reason,
                data,
            )
            return

        _LOGGER.debug("Received from %s: %r", sender, data)
        if response.structured:
            self._advance_counter(response.transaction_id + 1)

        if not self.registry.resolve(
            response.transaction_id, CommandResult.from_response(response)
        ):
            self.stats["unmatched"] += 1

    def reset_address(self, host: Optional[str] = None):
        """Forget the learned Link address and return to discovery."""
        self.address = BridgeAddress.from_host(host)
        self._set_broadcast(self.address.discovering)
        _LOGGER.info("Link address reset to %s (%s)", self.address.host, self.address.mode.value)

    def _lock_address(self, host: str):
        self.address = BridgeAddress(host, AddressMode.UNICAST_LOCKED)
        self._set_broadcast(False)
        _LOGGER.info("Discovered LightwaveRF Link at %s", host)

    def _set_broadcast(self, enabled: bool):
        if self.send_transport is None:
            return
        sock = self.send_transport.get_extra_info("socket")
        if sock is not None:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1 if enabled else 0)

    def _advance_counter(self, value: int):
        if value > self._next_id:
            self._next_id = value

    def _allocate_id(self) -> int:
        while self.registry.is_pending(self._next_id):
            self._next_id += 1
        transaction_id = self._next_id
        self._next_id += 1
        return transaction_id


class UDPProtocol:
    """Asyncio protocol for UDP communication."""
    def __init__(self, data_handler, name: str):
        self.data_handler = data_handler
        self.name = name
        self.transport = None

    def connection_made(self, transport):
        self.transport = transport

    def datagram_received(self, data, addr):
        self.data_handler(data, addr)

    def error_received(self, exc):
        _LOGGER.error("UDP %s socket error: %s", self.name, exc)

    def connection_lost(self, exc):
        _LOGGER.debug("UDP %s socket closed", self.name)
