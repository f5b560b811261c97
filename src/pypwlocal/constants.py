"""Constants for the gateway's local TEDAPI protocol.

Addresses, request paths and the fixed values carried in every message
frame. The frame constants mirror what the gateway firmware expects and
must not be changed.
"""

from __future__ import annotations

# Fixed link-local address the gateway answers on when joined to its WiFi network
DEFAULT_REMOTE = "192.168.91.1:443"

# Basic-Auth username; the password is the secret printed on the gateway
SERVICE_ACCOUNT = "Tesla_Energy_Device"

# Request paths
DIN_PATH = "/tedapi/din"
LEADER_QUERY_PATH = "/tedapi/v1"
DEVICE_QUERY_PATH = "/tedapi/device/{din}/v1"

# Default request timeout (seconds)
DEFAULT_TIMEOUT = 10.0

# Anything shorter is an error page or truncated body, not a DIN
MIN_DIN_LENGTH = 16

# Frame constants
DELIVERY_CHANNEL = 1
LOCAL_PARTICIPANT = 1
QUERY_SEND_NUM = 2
QUERY_PAYLOAD_VALUE = 1
CONFIG_SEND_NUM = 1
EMPTY_VARIABLES = "{}"

# Status codes the gateway uses when it is throttling clients
RATE_LIMIT_STATUSES: frozenset[int] = frozenset({429, 503})

PROTOBUF_CONTENT_TYPE = "application/octet-stream"
