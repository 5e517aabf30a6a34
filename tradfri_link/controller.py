"""Connection lifecycle for a single TRÅDFRI gateway.

``TradfriController`` drives discovery, pairing, connect and observation,
keeps the device registry current from transport events, forwards those
events to the caller and dispatches commands by device category.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable

from .const import (
    CANCELED,
    DEFAULT_POLL_INTERVAL,
    DISCOVERY_RETRY_INTERVAL,
    EVENT_DEVICE_NOTIFIED,
    EVENT_DEVICE_REMOVED,
    EVENT_DEVICE_UPDATED,
)
from .exceptions import (
    TradfriAlreadyRunningError,
    TradfriAuthenticationError,
    TradfriCommandError,
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
from .poller import Poller, create_poller
from .registry import DeviceRegistry
from .transport import GatewayTransport, TradfriTransport

_LOGGER = logging.getLogger(__name__)

UpdateCallback = Callable[[str | None, Any, Exception | None], None]


class TradfriController:
    """Manages the connection to one TRÅDFRI gateway."""

    def __init__(
        self,
        transport: GatewayTransport | None = None,
        *,
        retry_interval: float = DISCOVERY_RETRY_INTERVAL,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_mode: PollMode = PollMode.SCHEDULED,
    ) -> None:
        self._transport: GatewayTransport = (
            transport if transport is not None else TradfriTransport()
        )
        self._retry_interval = retry_interval
        self._registry = DeviceRegistry()
        self._poller: Poller = create_poller(poll_mode, self.get_state, poll_interval)

        self._state = ControllerState.IDLE
        self._cancel = asyncio.Event()
        self._on_update: UpdateCallback = self._dummy
        self._debug = False

        self._gateway: GatewayDescriptor | None = None
        self._gw_address: str | None = None
        self._credentials: Credentials | None = None

    # ------------------------------------------------------------------
    #  Lifecycle
    # ------------------------------------------------------------------

    async def initialize(
        self,
        security_code: str,
        on_update: UpdateCallback | None = None,
        options: Mapping[str, Any] | InitializeOptions | None = None,
    ) -> Credentials | None:
        """Discover, pair if needed, connect and start observing.

        Returns the credentials in use so the caller can store them, or
        ``None`` when cancelled through ``initialize_cancel``. Raises
        ``TradfriAlreadyRunningError`` when a lifecycle is already active.
        """
        if self._state is not ControllerState.IDLE:
            _LOGGER.warning(
                "initialize() ignored, controller is %s", self._state.value
            )
            raise TradfriAlreadyRunningError(
                f"Controller already {self._state.value}"
            )

        opts = InitializeOptions.from_mapping(options)

        self._state = ControllerState.DISCOVERING
        cancel = self._cancel = asyncio.Event()
        self._registry.clear()
        self._gateway = None
        self._gw_address = None
        self._credentials = None
        self._on_update = on_update if on_update is not None else self._dummy
        self._debug = opts.debug_mode

        if self._debug:
            _LOGGER.debug(
                "initialize: identity=%s, auto_get=%s",
                opts.identity or "<new link>",
                opts.auto_get,
            )

        try:
            return await self._initialize(security_code or "", opts, cancel)
        except BaseException:
            await self._reset(cancel)
            raise

    async def _initialize(
        self,
        security_code: str,
        opts: InitializeOptions,
        cancel: asyncio.Event,
    ) -> Credentials | None:
        on_update = self._on_update

        descriptor: GatewayDescriptor | None = None
        while descriptor is None:
            if cancel.is_set():
                return await self._canceled(cancel, on_update)

            try:
                descriptor = await self._transport.discover()
            except Exception:
                _LOGGER.exception("Gateway discovery failed")
                raise

            if descriptor is None:
                _LOGGER.info(
                    "No gateway found, retrying in %.0fs", self._retry_interval
                )
                await self._backoff(cancel)

        if cancel.is_set():
            return await self._canceled(cancel, on_update)

        self._gateway = descriptor
        self._gw_address = address = descriptor.address
        if self._debug:
            _LOGGER.debug("Gateway %s found at %s", descriptor.name, address)

        identity, psk = opts.identity, opts.psk
        if opts.new_link:
            self._state = ControllerState.AUTHENTICATING
            _LOGGER.info("Pairing with gateway %s", address)
            try:
                credentials = await self._transport.authenticate(
                    address, security_code
                )
            except Exception:
                _LOGGER.exception("Pairing with gateway %s failed", address)
                raise
            if cancel.is_set():
                return await self._canceled(cancel, on_update)
            identity, psk = credentials.identity, credentials.psk
            if self._debug:
                _LOGGER.debug("Paired as %s", identity)

        credentials = self._credentials = Credentials(identity=identity, psk=psk)

        self._transport.on(EVENT_DEVICE_UPDATED, self._device_updated)
        self._transport.on(EVENT_DEVICE_REMOVED, self._device_removed)
        self._transport.on(EVENT_DEVICE_NOTIFIED, self._device_notified)

        self._state = ControllerState.CONNECTING
        try:
            await self._transport.connect(address, identity, psk)
        except TradfriTimeoutError:
            _LOGGER.error("Connection to gateway %s timed out", address)
            raise
        except TradfriAuthenticationError:
            _LOGGER.error(
                "Gateway %s rejected identity %s, pair again", address, identity
            )
            raise
        except Exception:
            _LOGGER.exception("Unknown error connecting to gateway %s", address)
            raise

        if cancel.is_set():
            if self._cancel is cancel:
                await self._transport.destroy()
            return await self._canceled(cancel, on_update)

        self._state = ControllerState.OBSERVING
        _LOGGER.info("Connected to gateway %s", address)

        if opts.auto_get:
            self.auto_get_start()

        try:
            await self.get_state()
        except Exception:
            _LOGGER.exception("Initial device fetch from %s failed", address)

        return credentials

    def initialize_cancel(self) -> None:
        """Abort an in-flight initialize at its next checkpoint."""
        self._cancel.set()

    async def release(self) -> None:
        """Tear the session down; a no-op when nothing is running."""
        if self._state is ControllerState.IDLE:
            return

        # stops an initialize() still in flight at its next checkpoint
        self._cancel.set()
        self._state = ControllerState.IDLE

        await self.auto_get_stop()
        await self._transport.destroy()
        self._clear()
        _LOGGER.debug("Released gateway connection")

    async def _backoff(self, cancel: asyncio.Event) -> None:
        try:
            async with asyncio.timeout(self._retry_interval):
                await cancel.wait()
        except TimeoutError:
            pass

    async def _canceled(
        self, cancel: asyncio.Event, on_update: UpdateCallback
    ) -> None:
        _LOGGER.info("Gateway initialization canceled")
        on_update(None, CANCELED, None)
        await self._reset(cancel)
        return None

    async def _reset(self, cancel: asyncio.Event) -> None:
        if self._cancel is not cancel:
            return  # a newer initialize() owns the state
        self._state = ControllerState.IDLE
        await self.auto_get_stop()
        self._clear()

    def _clear(self) -> None:
        self._registry.clear()
        self._gateway = None
        self._gw_address = None
        self._credentials = None

    # ------------------------------------------------------------------
    #  Observation
    # ------------------------------------------------------------------

    async def get_state(self) -> None:
        """Ask the transport for the current devices and (re)observe them."""
        if self._state is ControllerState.IDLE:
            return
        await self._transport.observe_devices()

    def auto_get_start(self) -> None:
        if not self._gw_address:
            _LOGGER.debug("No gateway address known, auto-get not started")
            return
        self._poller.start()

    async def auto_get_stop(self) -> None:
        await self._poller.stop()

    # ------------------------------------------------------------------
    #  Transport event handlers
    # ------------------------------------------------------------------

    def _device_updated(self, record: DeviceRecord) -> None:
        self._registry.upsert(record)
        if self._debug:
            _LOGGER.debug(
                "Device %s (%s) updated", record.instance_id, record.category.value
            )
        self._on_update(self._gw_address, record, None)

    def _device_removed(self, instance_id: int) -> None:
        if self._debug:
            _LOGGER.debug("Device %s removed", instance_id)
        self._registry.remove(instance_id)

    def _device_notified(self, instance_id: int, error: Exception | None) -> None:
        _LOGGER.warning("Notification for device %s: %s", instance_id, error)
        self._on_update(self._gw_address, self._registry.get(instance_id), error)

    def _dummy(
        self, gw_address: str | None, device: Any, error: Exception | None
    ) -> None:
        if self._debug:
            _LOGGER.debug(
                "Unhandled update from %s: %s (error: %s)", gw_address, device, error
            )

    # ------------------------------------------------------------------
    #  Commands
    # ------------------------------------------------------------------

    async def set_state(
        self,
        device_id: int,
        device_type: DeviceCategory | str,
        command: Mapping[str, Any],
    ) -> None:
        """Send ``command`` to the light or blind registered as ``device_id``."""
        category = self._parse_device_type(device_type)

        record = self._registry.partition(category).get(device_id)
        if record is None:
            _LOGGER.error("%s device not found: %s", category.value, device_id)
            return

        if self._debug:
            _LOGGER.debug("set_state(%s, %s, %s)", device_id, category.value, command)

        if category is DeviceCategory.LIGHT:
            await self._transport.operate_light(record, command)
        else:
            await self._transport.operate_blind(record, command)

    @staticmethod
    def _parse_device_type(device_type: DeviceCategory | str) -> DeviceCategory:
        try:
            category = DeviceCategory(device_type)
        except ValueError:
            category = None

        if category not in (DeviceCategory.LIGHT, DeviceCategory.BLIND):
            _LOGGER.error("Unknown device type: %s", device_type)
            raise TradfriCommandError(f"unknown device type: {device_type}")
        return category

    # ------------------------------------------------------------------
    #  Getters
    # ------------------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._state is not ControllerState.IDLE

    @property
    def canceled(self) -> bool:
        return self._cancel.is_set()

    @property
    def gateway(self) -> GatewayDescriptor | None:
        return self._gateway

    @property
    def gw_address(self) -> str | None:
        return self._gw_address

    @property
    def credentials(self) -> Credentials | None:
        return self._credentials

    @property
    def registry(self) -> DeviceRegistry:
        return self._registry

    @property
    def poller(self) -> Poller:
        return self._poller

    @property
    def facilities(self) -> dict[int, DeviceRecord]:
        return self._registry.facilities

    @property
    def lights(self) -> dict[int, DeviceRecord]:
        return self._registry.lights

    @property
    def blinds(self) -> dict[int, DeviceRecord]:
        return self._registry.blinds

    # ------------------------------------------------------------------
    #  Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TradfriController:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.release()
