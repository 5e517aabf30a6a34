"""Tests for mDNS gateway discovery."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from zeroconf import ServiceStateChange

from tradfri_link.const import SERVICE_TYPE
from tradfri_link.discovery import discover_gateway
from tradfri_link.exceptions import TradfriDiscoveryError

SERVICE_NAME = f"gw-b072bf257a41.{SERVICE_TYPE}"

# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------


def _patch_zeroconf(announce=None, addresses=("10.0.0.5",), resolved=True):
    """Patch zeroconf classes; ``announce`` is fed to the browser handler."""
    aiozc = MagicMock()
    aiozc.async_close = AsyncMock()

    browser = MagicMock()
    browser.async_cancel = AsyncMock()

    def _browser(zc, service_type, handlers):
        if announce is not None:
            handlers[0](
                zeroconf=zc,
                service_type=service_type,
                name=SERVICE_NAME,
                state_change=announce,
            )
        return browser

    info = MagicMock()
    info.async_request = AsyncMock(return_value=resolved)
    info.parsed_addresses = MagicMock(return_value=list(addresses))
    info.server = "TRADFRI-Gateway-b072bf257a41.local."
    info.properties = {b"version": b"1.19.32"}

    patches = (
        patch("tradfri_link.discovery.AsyncZeroconf", return_value=aiozc),
        patch("tradfri_link.discovery.AsyncServiceBrowser", side_effect=_browser),
        patch("tradfri_link.discovery.AsyncServiceInfo", return_value=info),
    )
    return patches, aiozc, browser, info


class TestDiscoverGateway:
    """discover_gateway()"""

    async def test_found(self):
        patches, aiozc, browser, info = _patch_zeroconf(
            announce=ServiceStateChange.Added
        )
        with patches[0], patches[1], patches[2] as info_cls:
            descriptor = await discover_gateway(timeout=1)

        assert descriptor is not None
        assert descriptor.addresses == ("10.0.0.5",)
        assert descriptor.address == "10.0.0.5"
        assert descriptor.name == "gw-b072bf257a41"
        assert descriptor.version == "1.19.32"
        info_cls.assert_called_once_with(SERVICE_TYPE, SERVICE_NAME)
        browser.async_cancel.assert_awaited_once()
        aiozc.async_close.assert_awaited_once()

    async def test_nothing_found(self):
        patches, aiozc, browser, _ = _patch_zeroconf()
        with patches[0], patches[1], patches[2]:
            assert await discover_gateway(timeout=0.01) is None

        browser.async_cancel.assert_awaited_once()
        aiozc.async_close.assert_awaited_once()

    async def test_removed_services_ignored(self):
        patches, _, _, _ = _patch_zeroconf(announce=ServiceStateChange.Removed)
        with patches[0], patches[1], patches[2]:
            assert await discover_gateway(timeout=0.01) is None

    async def test_unresolved_service(self):
        patches, _, _, _ = _patch_zeroconf(
            announce=ServiceStateChange.Added, resolved=False
        )
        with patches[0], patches[1], patches[2]:
            assert await discover_gateway(timeout=1) is None

    async def test_no_addresses(self):
        patches, _, _, _ = _patch_zeroconf(
            announce=ServiceStateChange.Added, addresses=()
        )
        with patches[0], patches[1], patches[2]:
            assert await discover_gateway(timeout=1) is None

    async def test_socket_error(self):
        with patch(
            "tradfri_link.discovery.AsyncZeroconf",
            side_effect=OSError("no multicast"),
        ):
            with pytest.raises(TradfriDiscoveryError):
                await discover_gateway(timeout=1)
