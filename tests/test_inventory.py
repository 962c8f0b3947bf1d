"""
Tests for the device inventory sources: YAML file, flattened web
manager lists and the cloud API flow (with a fake aiohttp session).
"""

import asyncio

import aiohttp
import pytest

from custom_components.lightwaverf.device_abstraction.comms.results import (
    CloudAuthError,
    InventoryError,
)
from custom_components.lightwaverf.inventory import (
    DeviceDescriptor,
    LightwaveCloudClient,
    load_file_inventory,
    parse_cloud_profile,
    parse_file_inventory,
    parse_flat_inventory,
)

GEM_YAML = """
host: 192.168.1.20
room:
  - id: R1
    name: Living Room
    device:
      - id: D1
        name: Lamp
        type: D
      - id: D2
        name: Blinds
        type: P
      - id: D3
        name: Socket
        type: O
  - name: Kitchen
    device:
      - name: Spots
        type: D
      - name: Mood
        type: M
"""


def _profile():
    return {
        "content": {"estates": [{"locations": [{"zones": [{"rooms": [
            {"room_number": 1, "name": "Lounge", "devices": [
                {"device_number": 1, "name": "Lamp", "device_type_id": 2},
                {"device_number": 2, "name": "Socket", "device_type_id": 1},
            ]},
            {"room_number": 9, "name": "Study", "devices": [
                {"device_number": 1, "name": "Blind", "device_type_id": 3},
                {"device_number": 2, "name": "Radiator", "device_type_id": 7},
            ]},
        ]}]}]}]}
    }


class TestFileInventory:

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "lightwaverf-config.yml"
        path.write_text(GEM_YAML)

        devices = load_file_inventory(str(path))

        assert devices == [
            DeviceDescriptor(1, "Living Room", 1, "Lamp", "D"),
            DeviceDescriptor(1, "Living Room", 3, "Socket", "O"),
            DeviceDescriptor(2, "Kitchen", 1, "Spots", "D"),
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InventoryError):
            load_file_inventory(str(tmp_path / "missing.yml"))

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("room: [unclosed")
        with pytest.raises(InventoryError):
            load_file_inventory(str(path))

    def test_no_rooms(self):
        with pytest.raises(InventoryError):
            parse_file_inventory({"host": "x"})

    def test_bad_room_id(self):
        with pytest.raises(InventoryError):
            parse_file_inventory({"room": [{"id": "Rx", "device": []}]})

    def test_room_not_a_mapping(self):
        with pytest.raises(InventoryError):
            parse_file_inventory({"room": ["Hall"]})

    def test_device_not_a_mapping(self):
        with pytest.raises(InventoryError):
            parse_file_inventory({"room": [{"name": "Hall", "device": ["Lamp"]}]})

    def test_devices_not_a_list(self):
        with pytest.raises(InventoryError):
            parse_file_inventory({"room": [{"name": "Hall", "device": "Lamp"}]})


class TestFlatInventory:

    def test_rooms_and_devices(self):
        rooms = '"Lounge","Kitchen"' + ',""' * 6
        names = ['"Lamp"', '"Fan"'] + ['""'] * 8 + ['"Spots"'] + ['""'] * 69
        types = ['"D"', '"O"'] + ['"I"'] * 8 + ['"D"'] + ['"I"'] * 69

        devices = parse_flat_inventory(rooms, ",".join(names), ",".join(types))

        assert devices == [
            DeviceDescriptor(1, "Lounge", 1, "Lamp", "D"),
            DeviceDescriptor(1, "Lounge", 2, "Fan", "O"),
            DeviceDescriptor(2, "Kitchen", 1, "Spots", "D"),
        ]

    def test_short_lists(self):
        assert parse_flat_inventory('"A"', '"x"', '"O"') == [
            DeviceDescriptor(1, "A", 1, "x", "O"),
        ]


class TestCloudProfile:

    def test_type_codes_mapped(self):
        devices = parse_cloud_profile(_profile())

        assert devices == [
            DeviceDescriptor(1, "Lounge", 1, "Lamp", "D"),
            DeviceDescriptor(1, "Lounge", 2, "Socket", "O"),
            DeviceDescriptor(9, "Study", 1, "Blind", "P"),
        ]

    def test_unexpected_layout(self):
        with pytest.raises(InventoryError):
            parse_cloud_profile({"content": {"estates": []}})

    def test_room_without_number(self):
        profile = _profile()
        rooms = profile["content"]["estates"][0]["locations"][0]["zones"][0]["rooms"]
        del rooms[0]["room_number"]

        with pytest.raises(InventoryError):
            parse_cloud_profile(profile)

    def test_device_without_number(self):
        profile = _profile()
        rooms = profile["content"]["estates"][0]["locations"][0]["zones"][0]["rooms"]
        del rooms[1]["devices"][0]["device_number"]

        with pytest.raises(InventoryError):
            parse_cloud_profile(profile)

    def test_room_not_a_mapping(self):
        profile = _profile()
        profile["content"]["estates"][0]["locations"][0]["zones"][0]["rooms"] = ["Lounge"]

        with pytest.raises(InventoryError):
            parse_cloud_profile(profile)


class FakeResponse:
    def __init__(self, payload, status=200, error=None):
        self.payload = payload
        self.status = status
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientError(f"HTTP {self.status}")

    async def json(self, content_type=None):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, headers=None):
        path = url.split(".com", 1)[1]
        self.calls.append((path, params, headers))
        return self.responses[path]


class TestCloudClient:

    @pytest.mark.asyncio
    async def test_login_flow(self):
        session = FakeSession({
            "/v1/user": FakeResponse({"application_key": "app-key"}),
            "/v1/auth": FakeResponse({"token": "tok"}),
            "/v1/device_type": FakeResponse({}),
            "/v1/user_profile": FakeResponse(_profile()),
        })
        client = LightwaveCloudClient(session)

        devices = await client.fetch_devices("me@example.com", "1234")

        assert len(devices) == 3
        assert session.calls[0] == (
            "/v1/user", {"password": "1234", "username": "me@example.com"}, None
        )
        assert session.calls[1][1] == {"application_key": "app-key"}
        assert session.calls[3][2]["X-LWRF-token"] == "tok"

    @pytest.mark.asyncio
    async def test_rejected_login(self):
        session = FakeSession({"/v1/user": FakeResponse({"error": "bad pin"})})

        with pytest.raises(CloudAuthError):
            await LightwaveCloudClient(session).fetch_devices("me@example.com", "0000")

    @pytest.mark.asyncio
    async def test_http_error(self):
        session = FakeSession({"/v1/user": FakeResponse({}, status=401)})

        with pytest.raises(CloudAuthError):
            await LightwaveCloudClient(session).fetch_devices("me@example.com", "0000")

    @pytest.mark.asyncio
    async def test_request_timeout(self):
        session = FakeSession({
            "/v1/user": FakeResponse({}, error=asyncio.TimeoutError()),
        })

        with pytest.raises(CloudAuthError):
            await LightwaveCloudClient(session).fetch_devices("me@example.com", "1234")

    @pytest.mark.asyncio
    async def test_malformed_profile_is_inventory_error(self):
        session = FakeSession({
            "/v1/user": FakeResponse({"application_key": "app-key"}),
            "/v1/auth": FakeResponse({"token": "tok"}),
            "/v1/device_type": FakeResponse({}),
            "/v1/user_profile": FakeResponse({"content": {"estates": [{"locations": [
                {"zones": [{"rooms": [{"name": "Lounge", "devices": [
                    {"name": "Lamp", "device_type_id": 2},
                ]}]}]},
            ]}]}}),
        })

        with pytest.raises(InventoryError):
            await LightwaveCloudClient(session).fetch_devices("me@example.com", "1234")
