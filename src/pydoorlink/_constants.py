"""Internal constants shared across the library."""

import re

#: Address the peer serves on while it hosts its own access point.
PEER_AP_ADDRESS = "192.168.4.1"

SESSION_KEY = "esp32_connection"
DOOR_STATE_KEY = "door_state"

PING_PATH = "ping"
SETUP_PATH = "setup"

DEFAULT_PROBE_TIMEOUT: float = 5.0
DEFAULT_COMMAND_TIMEOUT: float = 10.0
DEFAULT_HANDSHAKE_TIMEOUT: float = 20.0
DEFAULT_HEALTH_CHECK_INTERVAL: float = 30.0
DEFAULT_REJOIN_PROBE_INTERVAL: float = 1.0

# ------------------------------------------------------------------
# Setup handshake
# ------------------------------------------------------------------

CREDENTIALS_MARKER = "Credentials received"
PEER_ADDRESS_PATTERN = re.compile(r"\s*(\d+\.\d+\.\d+\.\d+)")

# ------------------------------------------------------------------
# Signal quality thresholds (dBm, inclusive lower bounds)
# ------------------------------------------------------------------

SIGNAL_EXCELLENT_DBM = -50
SIGNAL_GOOD_DBM = -60
SIGNAL_FAIR_DBM = -70
