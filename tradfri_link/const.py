"""Constants for the TRÅDFRI gateway connection manager."""

from __future__ import annotations

# ── Discovery ───────────────────────────────────────────────────────
SERVICE_TYPE = "_coap._udp.local."
DISCOVERY_TIMEOUT = 10.0
DISCOVERY_RETRY_INTERVAL = 30.0
SERVICE_INFO_TIMEOUT_MS = 3000

# ── Observation ─────────────────────────────────────────────────────
DEFAULT_POLL_INTERVAL = 60.0
OBSERVE_FOREVER = 0

# ── Transport events ────────────────────────────────────────────────
EVENT_DEVICE_UPDATED = "device updated"
EVENT_DEVICE_REMOVED = "device removed"
EVENT_DEVICE_NOTIFIED = "device notified"

# ── initialize() options ────────────────────────────────────────────
CONF_IDENTITY = "identity"
CONF_PSK = "psk"
CONF_AUTO_GET = "auto_get"
CONF_DEBUG_MODE = "debug_mode"

# Passed in the device slot of the update callback when initialize is aborted
CANCELED = "Canceled"

# ── Light commands (operate_light) ──────────────────────────────────
LIGHT_STATE = "state"
LIGHT_DIMMER = "dimmer"
LIGHT_COLOR_TEMP = "color_temp"
LIGHT_HEX_COLOR = "hex_color"
LIGHT_TRANSITION_TIME = "transition_time"
DIMMER_MAX = 254

# ── Blind commands (operate_blind) ──────────────────────────────────
BLIND_POSITION = "position"
BLIND_STOP = "stop"
POSITION_MAX = 100
