"""
Shared fixtures for LightwaveRF tests.

Sockets are replaced with a FakeTransport that records every datagram
together with the loop time it was sent at.
"""

import asyncio
from unittest.mock import MagicMock

import pytest


class FakeTransport:
    def __init__(self):
        self.sent = []
        self.socket = MagicMock()
        self.closed = False

    def sendto(self, data, addr):
        try:
            now = asyncio.get_running_loop().time()
        except RuntimeError:
            now = None
        self.sent.append((data.decode("utf-8"), addr, now))

    def get_extra_info(self, name, default=None):
        if name == "socket":
            return self.socket
        return default

    def close(self):
        self.closed = True

    @property
    def messages(self):
        return [message for message, _, _ in self.sent]


@pytest.fixture
def fake_transport():
    return FakeTransport()
