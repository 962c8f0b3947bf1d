"""Device inventory sources for LightwaveRF.

The Link itself cannot list the devices paired with it, so rooms and
devices come either from a lightwaverf gem YAML file or from the
LightwaveRF cloud account the Link is registered to.

Device type codes used throughout:
    O: On/Off switch
    D: Dimmer
    P: Open/Close (blinds, curtains)
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List

import aiohttp
import yaml

from .const import DEFAULT_CLOUD_HOST
from .device_abstraction.comms.results import CloudAuthError, InventoryError

_LOGGER = logging.getLogger(__name__)

TYPE_ON_OFF = "O"
TYPE_DIMMER = "D"
TYPE_OPEN_CLOSE = "P"

FILE_DEVICE_TYPES = {TYPE_ON_OFF, TYPE_DIMMER}
CLOUD_DEVICE_TYPES = {1: TYPE_ON_OFF, 2: TYPE_DIMMER, 3: TYPE_OPEN_CLOSE}

FLAT_ROOMS = 8
FLAT_DEVICES_PER_ROOM = 10

_QUOTED = re.compile(r'"([^"]*)"')


@dataclass(frozen=True)
class DeviceDescriptor:
    room_id: int
    room_name: str
    device_id: int
    device_name: str
    device_type: str


def _parse_id(value: Any, fallback: int) -> int:
    """Turn ``R3``/``D2`` style ids into numbers."""
    if value is None:
        return fallback
    if isinstance(value, int):
        return value
    try:
        return int(str(value)[1:])
    except ValueError:
        raise InventoryError(f"Invalid room or device id: {value!r}")


def parse_file_inventory(config: Dict[str, Any]) -> List[DeviceDescriptor]:
    """Build descriptors from a parsed lightwaverf gem configuration."""
    if not isinstance(config, dict) or not isinstance(config.get("room"), list):
        raise InventoryError("Configuration has no 'room' list")

    devices = []
    for room_index, room in enumerate(config["room"]):
        if not isinstance(room, dict):
            raise InventoryError(f"Room entry {room_index + 1} is not a mapping: {room!r}")
        room_id = _parse_id(room.get("id"), room_index + 1)
        room_devices = room.get("device") or []
        if not isinstance(room_devices, list) or not all(
            isinstance(device, dict) for device in room_devices
        ):
            raise InventoryError(f"Devices of room {room_id} are not a list of mappings")
        kept = [
            device for device in room_devices
            if device.get("type") in FILE_DEVICE_TYPES
        ]
        for device_index, device in enumerate(kept):
            devices.append(DeviceDescriptor(
                room_id=room_id,
                room_name=room.get("name", ""),
                device_id=_parse_id(device.get("id"), device_index + 1),
                device_name=device.get("name", ""),
                device_type=device["type"],
            ))
    return devices


def load_file_inventory(path: str) -> List[DeviceDescriptor]:
    """Read a lightwaverf gem YAML file. Blocking; run in an executor."""
    try:
        with open(path, encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InventoryError(f"Unable to read YAML file {path}: {e}") from e

    devices = parse_file_inventory(config)
    _LOGGER.info("Loaded %d devices from %s", len(devices), path)
    return devices


def parse_flat_inventory(rooms: str, devices: str, types: str) -> List[DeviceDescriptor]:
    """Parse the quoted room, device and type lists of the legacy web manager.

    The lists hold 8 room names, and 10 device names and type codes per
    room, in order.

    No configured source produces this format; the hub loads only the YAML
    file and the cloud profile. It is kept as a helper for callers that
    already hold the lists scraped from an older web manager page.
    """
    room_names = _QUOTED.findall(rooms)
    device_names = _QUOTED.findall(devices)
    device_types = _QUOTED.findall(types)

    result = []
    for room_index in range(FLAT_ROOMS):
        room_name = room_names[room_index] if room_index < len(room_names) else ""
        for device_index in range(FLAT_DEVICES_PER_ROOM):
            position = room_index * FLAT_DEVICES_PER_ROOM + device_index
            if position >= len(device_types):
                return result
            device_type = device_types[position]
            if device_type not in FILE_DEVICE_TYPES:
                continue
            result.append(DeviceDescriptor(
                room_id=room_index + 1,
                room_name=room_name,
                device_id=device_index + 1,
                device_name=device_names[position] if position < len(device_names) else "",
                device_type=device_type,
            ))
    return result


def parse_cloud_profile(profile: Dict[str, Any]) -> List[DeviceDescriptor]:
    """Build descriptors from a nested ``/v1/user_profile`` response."""
    try:
        home = profile["content"]["estates"][0]["locations"][0]["zones"][0]
        rooms = home["rooms"]
    except (KeyError, IndexError, TypeError) as e:
        raise InventoryError(f"Unexpected user profile layout: {e}") from e

    devices = []
    try:
        for room in rooms:
            _LOGGER.debug("Room %s with %d devices", room.get("name"), len(room.get("devices", [])))
            for device in room.get("devices", []):
                device_type = CLOUD_DEVICE_TYPES.get(device.get("device_type_id"))
                if device_type is None:
                    _LOGGER.debug(
                        "Skipping %s with unsupported type %s",
                        device.get("name"),
                        device.get("device_type_id"),
                    )
                    continue
                devices.append(DeviceDescriptor(
                    room_id=room["room_number"],
                    room_name=room.get("name", ""),
                    device_id=device["device_number"],
                    device_name=device.get("name", ""),
                    device_type=device_type,
                ))
    except (KeyError, TypeError, AttributeError) as e:
        raise InventoryError(f"Unexpected room or device in user profile: {e!r}") from e
    return devices


class LightwaveCloudClient:
    """Fetches the device list from the LightwaveRF control API."""

    def __init__(self, session: aiohttp.ClientSession, host: str = DEFAULT_CLOUD_HOST):
        self.session = session
        self.host = host.rstrip("/")

    async def _get_json(self, path: str, params=None, headers=None) -> Dict[str, Any]:
        url = f"{self.host}{path}"
        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                response.raise_for_status()
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise CloudAuthError(f"Request to {path} failed: {e}") from e

    async def fetch_devices(self, email: str, pin: str) -> List[DeviceDescriptor]:
        """Log in with email and PIN and return the account's devices."""
        _LOGGER.debug("Getting rooms from LightwaveRF cloud")
        user = await self._get_json("/v1/user", params={"password": pin, "username": email})
        application_key = user.get("application_key")
        if not application_key:
            raise CloudAuthError("Login rejected: no application key returned")

        auth = await self._get_json("/v1/auth", params={"application_key": application_key})
        token = auth.get("token")
        if not token:
            raise CloudAuthError("Login rejected: no token returned")

        headers = {
            "X-LWRF-token": token,
            "X-LWRF-platform": "ios",
            "X-LWRF-skin": "lightwaverf",
        }
        await self._get_json("/v1/device_type", params={"nested": 1}, headers=headers)
        profile = await self._get_json("/v1/user_profile", params={"nested": 1}, headers=headers)

        devices = parse_cloud_profile(profile)
        _LOGGER.info("Loaded %d devices from LightwaveRF cloud", len(devices))
        return devices
