"""Gateway transport: discovery, DTLS pairing, CoAP observation and commands."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from functools import partial
from typing import Any, Callable, Protocol
from uuid import uuid4

from pytradfri import Gateway
from pytradfri.api.aiocoap_api import APIFactory
from pytradfri.error import ClientError, RequestError, RequestTimeout

from .const import (
    BLIND_POSITION,
    BLIND_STOP,
    DIMMER_MAX,
    DISCOVERY_TIMEOUT,
    EVENT_DEVICE_NOTIFIED,
    EVENT_DEVICE_REMOVED,
    EVENT_DEVICE_UPDATED,
    LIGHT_COLOR_TEMP,
    LIGHT_DIMMER,
    LIGHT_HEX_COLOR,
    LIGHT_STATE,
    LIGHT_TRANSITION_TIME,
    OBSERVE_FOREVER,
    POSITION_MAX,
)
from .discovery import discover_gateway
from .exceptions import (
    TradfriAuthenticationError,
    TradfriCommandError,
    TradfriConnectionError,
    TradfriTimeoutError,
)
from .models import Credentials, DeviceRecord, GatewayDescriptor

_LOGGER = logging.getLogger(__name__)

EventHandler = Callable[..., None]


def _checked_level(key: str, value: Any, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TradfriCommandError(f"{key} must be an integer, got {value!r}")
    if not 0 <= value <= maximum:
        raise TradfriCommandError(f"{key} must be 0-{maximum}, got {value}")
    return value


class GatewayTransport(Protocol):
    """What the lifecycle controller needs from a gateway transport."""

    async def discover(self) -> GatewayDescriptor | None: ...

    async def authenticate(self, host: str, security_code: str) -> Credentials: ...

    async def connect(self, host: str, identity: str, psk: str) -> None: ...

    def on(self, event: str, handler: EventHandler) -> None: ...

    async def observe_devices(self) -> None: ...

    async def operate_light(
        self, record: DeviceRecord, command: Mapping[str, Any]
    ) -> None: ...

    async def operate_blind(
        self, record: DeviceRecord, command: Mapping[str, Any]
    ) -> None: ...

    async def destroy(self) -> None: ...


class TradfriTransport:
    """pytradfri/aiocoap transport for a single TRÅDFRI gateway."""

    def __init__(self, discovery_timeout: float = DISCOVERY_TIMEOUT) -> None:
        self._discovery_timeout = discovery_timeout
        self._host: str | None = None
        self._factory: APIFactory | None = None
        self._gateway = Gateway()

        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._devices: dict[int, Any] = {}
        self._observed: set[int] = set()

    @property
    def connected(self) -> bool:
        return self._factory is not None

    # ------------------------------------------------------------------
    #  Discovery / pairing / session
    # ------------------------------------------------------------------

    async def discover(self) -> GatewayDescriptor | None:
        return await discover_gateway(self._discovery_timeout)

    async def authenticate(self, host: str, security_code: str) -> Credentials:
        """Pair with the gateway using the code printed on its back."""
        identity = uuid4().hex
        _LOGGER.debug("Pairing with gateway at %s as %s", host, identity)

        factory = await APIFactory.init(host=host, psk_id=identity)
        try:
            psk = await factory.generate_psk(security_code)
        except RequestTimeout as exc:
            raise TradfriTimeoutError(
                "Timeout pairing with TRÅDFRI gateway"
            ) from exc
        except RequestError as exc:
            raise TradfriAuthenticationError(
                "Gateway rejected pairing, check the security code"
            ) from exc
        finally:
            await factory.shutdown()

        return Credentials(identity=identity, psk=psk)

    async def connect(self, host: str, identity: str, psk: str) -> None:
        """Open a DTLS session and prove it with a gateway info request."""
        if self._factory is not None:
            await self._shutdown_factory()

        factory = await APIFactory.init(host=host, psk_id=identity, psk=psk)
        try:
            info = await factory.request(self._gateway.get_gateway_info())
        except RequestTimeout as exc:
            await factory.shutdown()
            raise TradfriTimeoutError(
                "Timeout connecting to TRÅDFRI gateway"
            ) from exc
        except ClientError as exc:
            await factory.shutdown()
            raise TradfriAuthenticationError(
                "Gateway reachable but authentication failed, check identity / psk"
            ) from exc
        except (RequestError, OSError) as exc:
            await factory.shutdown()
            raise TradfriConnectionError(
                "Cannot reach TRÅDFRI gateway, check host / IP address"
            ) from exc

        self._host = host
        self._factory = factory
        _LOGGER.debug(
            "Connected to gateway %s (firmware %s)",
            host,
            getattr(info, "firmware_version", None),
        )

    # ------------------------------------------------------------------
    #  Events
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers[event]
        if handler not in handlers:
            handlers.append(handler)

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, ())):
            handler(*args)

    # ------------------------------------------------------------------
    #  Observation
    # ------------------------------------------------------------------

    async def observe_devices(self) -> None:
        """Refresh the device list and observe devices not yet observed."""
        request = self._request_api()

        try:
            devices_commands = await request(self._gateway.get_devices())
            devices = await request(devices_commands)
        except RequestTimeout as exc:
            raise TradfriTimeoutError(
                "Timeout fetching devices from TRÅDFRI gateway"
            ) from exc
        except RequestError as exc:
            raise TradfriConnectionError(
                "Failed to fetch devices from TRÅDFRI gateway"
            ) from exc

        current = {device.id: device for device in devices}

        for instance_id in [i for i in self._devices if i not in current]:
            del self._devices[instance_id]
            self._observed.discard(instance_id)
            self._emit(EVENT_DEVICE_REMOVED, instance_id)

        for instance_id, device in current.items():
            watched = instance_id in self._devices and instance_id in self._observed
            self._devices[instance_id] = device
            if watched:
                # changes arrive through the observation callback
                continue
            self._emit(EVENT_DEVICE_UPDATED, DeviceRecord.from_device(device))
            await self._observe(device)

        _LOGGER.debug("Refreshed %s devices", len(current))

    async def _observe(self, device: Any) -> None:
        command = device.observe(
            self._on_observed,
            partial(self._on_observe_error, device.id),
            duration=OBSERVE_FOREVER,
        )
        self._observed.add(device.id)
        try:
            await self._request_api()(command)
        except RequestError as exc:
            self._observed.discard(device.id)
            _LOGGER.warning("Failed to observe device %s: %s", device.id, exc)

    def _on_observed(self, device: Any) -> None:
        self._devices[device.id] = device
        self._emit(EVENT_DEVICE_UPDATED, DeviceRecord.from_device(device))

    def _on_observe_error(self, instance_id: int, exc: Exception) -> None:
        # picked up again by the next observe_devices()
        self._observed.discard(instance_id)
        self._emit(EVENT_DEVICE_NOTIFIED, instance_id, exc)

    # ------------------------------------------------------------------
    #  Commands
    # ------------------------------------------------------------------

    async def operate_light(
        self, record: DeviceRecord, command: Mapping[str, Any]
    ) -> None:
        """Apply a light command, e.g. ``{"state": True, "dimmer": 128}``."""
        control = record.device.light_control
        transition = command.get(LIGHT_TRANSITION_TIME)
        kwargs = {} if transition is None else {"transition_time": transition}

        commands = []
        for key, value in command.items():
            if key == LIGHT_TRANSITION_TIME:
                continue
            if key == LIGHT_STATE:
                commands.append(control.set_state(bool(value)))
            elif key == LIGHT_DIMMER:
                dimmer = _checked_level(key, value, DIMMER_MAX)
                commands.append(control.set_dimmer(dimmer, **kwargs))
            elif key == LIGHT_COLOR_TEMP:
                commands.append(control.set_color_temp(int(value), **kwargs))
            elif key == LIGHT_HEX_COLOR:
                commands.append(control.set_hex_color(str(value), **kwargs))
            else:
                raise TradfriCommandError(f"unknown light command: {key}")

        await self._send(record, commands)

    async def operate_blind(
        self, record: DeviceRecord, command: Mapping[str, Any]
    ) -> None:
        """Apply a blind command: ``{"position": 0-100}`` or ``{"stop": True}``."""
        control = record.device.blind_control

        commands = []
        for key, value in command.items():
            if key == BLIND_POSITION:
                position = _checked_level(key, value, POSITION_MAX)
                commands.append(control.set_state(position))
            elif key == BLIND_STOP:
                if value:
                    commands.append(control.trigger_stop())
            else:
                raise TradfriCommandError(f"unknown blind command: {key}")

        await self._send(record, commands)

    async def _send(self, record: DeviceRecord, commands: list[Any]) -> None:
        request = self._request_api()
        try:
            for command in commands:
                await request(command)
        except RequestError as exc:
            raise TradfriCommandError(
                f"Gateway rejected command for device {record.instance_id}"
            ) from exc

    def _request_api(self) -> Callable[..., Any]:
        if self._factory is None:
            raise TradfriConnectionError("Not connected to a TRÅDFRI gateway")
        return self._factory.request

    # ------------------------------------------------------------------
    #  Session lifecycle
    # ------------------------------------------------------------------

    async def destroy(self) -> None:
        """Shut the session down and forget handlers and observations."""
        self._handlers.clear()
        self._devices.clear()
        self._observed.clear()
        await self._shutdown_factory()

    async def _shutdown_factory(self) -> None:
        factory, self._factory = self._factory, None
        if factory is not None:
            _LOGGER.debug("Closing session with gateway %s", self._host)
            await factory.shutdown()
