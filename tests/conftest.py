"""Shared fixtures for TRÅDFRI connection manager tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from tradfri_link.models import (
    Credentials,
    DeviceCategory,
    DeviceRecord,
    GatewayDescriptor,
)


def _make_device(
    instance_id: int,
    name: str = "Device",
    light: bool = False,
    blind: bool = False,
) -> MagicMock:
    """Return a stand-in for a pytradfri ``Device``."""
    device = MagicMock()
    device.id = instance_id
    device.name = name
    device.has_light_control = light
    device.has_blind_control = blind
    return device


@pytest.fixture
def gateway_descriptor() -> GatewayDescriptor:
    """Return a sample GatewayDescriptor."""
    return GatewayDescriptor(
        name="gw-b072bf257a41",
        host="TRADFRI-Gateway-b072bf257a41.local.",
        version="1.19.32",
        addresses=("10.0.0.5",),
        properties={b"version": b"1.19.32"},
    )


@pytest.fixture
def mock_transport(gateway_descriptor) -> AsyncMock:
    """Return a fully-mocked GatewayTransport."""
    transport = AsyncMock()
    transport.discover = AsyncMock(return_value=gateway_descriptor)
    transport.authenticate = AsyncMock(
        return_value=Credentials(identity="id1", psk="psk1")
    )
    transport.connect = AsyncMock()
    transport.on = MagicMock()
    transport.observe_devices = AsyncMock()
    transport.operate_light = AsyncMock()
    transport.operate_blind = AsyncMock()
    transport.destroy = AsyncMock()
    return transport


@pytest.fixture
def light_record() -> DeviceRecord:
    """Return a sample light DeviceRecord."""
    return DeviceRecord(
        instance_id=1,
        category=DeviceCategory.LIGHT,
        name="Living Room Bulb",
        device=_make_device(1, "Living Room Bulb", light=True),
    )


@pytest.fixture
def blind_record() -> DeviceRecord:
    """Return a sample blind DeviceRecord."""
    return DeviceRecord(
        instance_id=2,
        category=DeviceCategory.BLIND,
        name="Bedroom Blind",
        device=_make_device(2, "Bedroom Blind", blind=True),
    )


@pytest.fixture
def remote_record() -> DeviceRecord:
    """Return a sample DeviceRecord that is neither light nor blind."""
    return DeviceRecord(
        instance_id=3,
        category=DeviceCategory.OTHER,
        name="Remote Control",
        device=_make_device(3, "Remote Control"),
    )
