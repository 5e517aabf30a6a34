"""Exceptions for TRÅDFRI gateway communication."""

from __future__ import annotations


class TradfriError(Exception):
    """Base TRÅDFRI exception."""


class TradfriConnectionError(TradfriError):
    """TRÅDFRI connection exception (unreachable gateway)."""


class TradfriTimeoutError(TradfriConnectionError):
    """TRÅDFRI timeout exception (gateway did not answer in time)."""


class TradfriAuthenticationError(TradfriError):
    """TRÅDFRI authentication exception (bad security code or psk)."""


class TradfriDiscoveryError(TradfriError):
    """TRÅDFRI discovery exception (mDNS failure)."""


class TradfriCommandError(TradfriError):
    """TRÅDFRI command exception (unknown device type, rejected request)."""


class TradfriAlreadyRunningError(TradfriError):
    """initialize() called while a lifecycle is already in progress."""
