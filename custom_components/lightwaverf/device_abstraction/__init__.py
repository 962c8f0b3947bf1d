"""Device abstraction layer for the LightwaveRF integration."""
from .comms import DispatchQueue, LightwaveTransmitter, TransactionRegistry
from .controller import LightwaveController
from .devices import LightwaveCover, LightwaveDevice, LightwaveDimmer, LightwaveSwitch

__all__ = [
    "DispatchQueue",
    "LightwaveTransmitter",
    "TransactionRegistry",
    "LightwaveController",
    "LightwaveDevice",
    "LightwaveSwitch",
    "LightwaveDimmer",
    "LightwaveCover",
]
