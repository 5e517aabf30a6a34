"""Data models for the TRÅDFRI gateway connection manager."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import voluptuous as vol

from .const import CONF_AUTO_GET, CONF_DEBUG_MODE, CONF_IDENTITY, CONF_PSK


class DeviceCategory(Enum):
    """Closed set of device categories the registry partitions by."""

    LIGHT = "light"
    BLIND = "blind"
    OTHER = "other"


class ControllerState(Enum):
    """Lifecycle states of a TradfriController."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    AUTHENTICATING = "authenticating"
    CONNECTING = "connecting"
    OBSERVING = "observing"


class PollMode(Enum):
    """How device state is kept fresh once connected."""

    SCHEDULED = "scheduled"
    STREAM = "stream"


@dataclass(frozen=True, slots=True)
class GatewayDescriptor:
    """A gateway found on the local network."""

    name: str
    host: str | None
    version: str | None
    addresses: tuple[str, ...]
    properties: dict[Any, Any] = field(default_factory=dict)

    @property
    def address(self) -> str:
        """Only the first advertised address is used."""
        return self.addresses[0]


@dataclass(frozen=True, slots=True)
class Credentials:
    """Identity and pre-shared key of a gateway link."""

    identity: str
    psk: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class DeviceRecord:
    """Last known state of one device, as pushed by the transport."""

    instance_id: int
    category: DeviceCategory
    name: str
    device: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_device(cls, device: Any) -> DeviceRecord:
        """Build a record from a pytradfri ``Device``."""
        if getattr(device, "has_light_control", False):
            category = DeviceCategory.LIGHT
        elif getattr(device, "has_blind_control", False):
            category = DeviceCategory.BLIND
        else:
            category = DeviceCategory.OTHER

        return cls(
            instance_id=device.id,
            category=category,
            name=device.name or str(device.id),
            device=device,
        )


OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_IDENTITY, default=""): vol.Any(None, str),
        vol.Optional(CONF_PSK, default=""): vol.Any(None, str),
        vol.Optional(CONF_AUTO_GET, default=True): vol.Any(None, bool),
        vol.Optional(CONF_DEBUG_MODE, default=False): vol.Any(None, bool),
    }
)


@dataclass(frozen=True, slots=True)
class InitializeOptions:
    """Options accepted by ``TradfriController.initialize``.

    An empty identity requests a new link (pairing with the security code).
    """

    identity: str = ""
    psk: str = ""
    auto_get: bool = True
    debug_mode: bool = False

    @classmethod
    def from_mapping(
        cls, options: Mapping[str, Any] | InitializeOptions | None
    ) -> InitializeOptions:
        """Validate a plain mapping; raises ``voluptuous.Invalid``."""
        if options is None:
            return cls()
        if isinstance(options, InitializeOptions):
            return options

        validated = OPTIONS_SCHEMA(dict(options))
        return cls(
            identity=validated[CONF_IDENTITY] or "",
            psk=validated[CONF_PSK] or "",
            auto_get=validated[CONF_AUTO_GET] is not False,
            debug_mode=validated[CONF_DEBUG_MODE] is True,
        )

    @property
    def new_link(self) -> bool:
        return not self.identity
