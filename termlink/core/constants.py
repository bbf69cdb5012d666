"""
Project constants definitions
"""

# ============================================================
# Actor Channels
# ============================================================

COMMAND_CHANNEL_CAPACITY = 32
EVENT_CHANNEL_CAPACITY = 128
EVENT_SEND_TIMEOUT = 5.0

# ============================================================
# I/O
# ============================================================

READ_BUFFER_SIZE = 4096
SSH_READ_POLL_INTERVAL = 0.01
SSH_READ_POLL_STEP = 0.002

# ============================================================
# Serial Defaults
# ============================================================

DEFAULT_BAUDRATE = 115200
DEFAULT_SERIAL_TIMEOUT = 0.01
DEFAULT_SERIAL_WRITE_TIMEOUT = 2.0
SETTINGS_SERIAL_TIMEOUT_MS = 1000

# ============================================================
# SSH Defaults
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 10
CONNECT_TIMEOUT_MARGIN = 2
HOST_KEY_DECISION_TIMEOUT = 300
KNOWN_HOSTS_PATH = "~/.ssh/known_hosts"

PTY_TERM = "xterm-256color"
PTY_WIDTH = 220
PTY_HEIGHT = 50

# ============================================================
# Configuration
# ============================================================

CONFIG_PATH = "~/.config/termlink/config.toml"
ENV_PREFIX = "TERMLINK_"

LINE_ENDINGS = {
    "LF": "\n",
    "CR": "\r",
    "CRLF": "\r\n",
}
DEFAULT_LINE_ENDING = "LF"
