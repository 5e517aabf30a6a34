"""Gateway discovery over mDNS/Zeroconf.

TRÅDFRI gateways advertise a ``_coap._udp.local.`` service. The first
service seen within the timeout is resolved into a ``GatewayDescriptor``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from zeroconf import ServiceStateChange
from zeroconf.asyncio import AsyncServiceBrowser, AsyncServiceInfo, AsyncZeroconf

from .const import DISCOVERY_TIMEOUT, SERVICE_INFO_TIMEOUT_MS, SERVICE_TYPE
from .exceptions import TradfriDiscoveryError
from .models import GatewayDescriptor

_LOGGER = logging.getLogger(__name__)


async def discover_gateway(
    timeout: float = DISCOVERY_TIMEOUT,
) -> GatewayDescriptor | None:
    """Browse for a gateway; return ``None`` if none answers in time."""
    loop = asyncio.get_running_loop()
    found = asyncio.Event()
    names: list[str] = []

    def _on_service_state_change(**kwargs: Any) -> None:
        # zeroconf >= 0.132 passes keyword-only arguments
        if kwargs.get("state_change") is not ServiceStateChange.Added:
            return
        name = kwargs.get("name", "")
        if name and name not in names:
            names.append(name)
            loop.call_soon_threadsafe(found.set)

    aiozc: AsyncZeroconf | None = None
    browser: AsyncServiceBrowser | None = None
    try:
        aiozc = AsyncZeroconf()
        browser = AsyncServiceBrowser(
            aiozc.zeroconf,
            SERVICE_TYPE,
            handlers=[_on_service_state_change],
        )

        try:
            async with asyncio.timeout(timeout):
                await found.wait()
        except TimeoutError:
            _LOGGER.debug("No gateway answered within %.0fs", timeout)
            return None

        name = names[0]
        info = AsyncServiceInfo(SERVICE_TYPE, name)
        if not await info.async_request(aiozc.zeroconf, SERVICE_INFO_TIMEOUT_MS):
            _LOGGER.debug("Could not resolve service %s", name)
            return None

        addresses = tuple(info.parsed_addresses())
        if not addresses:
            _LOGGER.debug("Service %s advertised no address", name)
            return None

        properties = dict(info.properties or {})
        version = properties.get(b"version")
        descriptor = GatewayDescriptor(
            name=name.removesuffix(f".{SERVICE_TYPE}"),
            host=info.server,
            version=version.decode() if isinstance(version, bytes) else version,
            addresses=addresses,
            properties=properties,
        )
        _LOGGER.debug("Discovered gateway %s at %s", descriptor.name, addresses)
        return descriptor

    except OSError as exc:
        raise TradfriDiscoveryError(
            f"mDNS discovery failed: {exc}"
        ) from exc
    finally:
        if browser is not None:
            await browser.async_cancel()
        if aiozc is not None:
            await aiozc.async_close()
