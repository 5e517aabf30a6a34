"""Connection manager for a single IKEA TRÅDFRI gateway."""

from __future__ import annotations

from .const import CANCELED
from .controller import TradfriController
from .exceptions import (
    TradfriAlreadyRunningError,
    TradfriAuthenticationError,
    TradfriCommandError,
    TradfriConnectionError,
    TradfriDiscoveryError,
    TradfriError,
    TradfriTimeoutError,
)
from .models import (
    ControllerState,
    Credentials,
    DeviceCategory,
    DeviceRecord,
    GatewayDescriptor,
    InitializeOptions,
    PollMode,
)
from .transport import GatewayTransport, TradfriTransport

__all__ = [
    "CANCELED",
    "ControllerState",
    "Credentials",
    "DeviceCategory",
    "DeviceRecord",
    "GatewayDescriptor",
    "GatewayTransport",
    "InitializeOptions",
    "PollMode",
    "TradfriAlreadyRunningError",
    "TradfriAuthenticationError",
    "TradfriCommandError",
    "TradfriConnectionError",
    "TradfriController",
    "TradfriDiscoveryError",
    "TradfriError",
    "TradfriTimeoutError",
    "TradfriTransport",
]
