"""
termlink - serial and SSH terminal connections

Runs each connection as an asyncio actor driven through two bounded channels:
- Serial ports via pyserial (configurable framing and flow control)
- Interactive SSH shells via paramiko (password or key authentication)
- Trust-on-first-use host key verification backed by known_hosts
"""

__version__ = "0.1.0"

# Export core components
from .core import (
    Connection,
    ConnectionState,
    ConnectionType,
    Connected,
    DataReceived,
    Disconnected,
    Error,
    HostKeyUnknown,
    SendData,
    Disconnect,
    HostKeyDecision,
    spawn_connection_actor,
)

# Export transports
from .domain.serial import SerialConfig, SerialTransport, list_serial_ports
from .domain.ssh import SshConfig, SshTransport, PasswordAuth, KeyFileAuth

__all__ = [
    # Version
    "__version__",
    # Actor
    "spawn_connection_actor",
    "Connection",
    "ConnectionState",
    "ConnectionType",
    # Events and commands
    "Connected",
    "DataReceived",
    "Disconnected",
    "Error",
    "HostKeyUnknown",
    "SendData",
    "Disconnect",
    "HostKeyDecision",
    # Serial
    "SerialConfig",
    "SerialTransport",
    "list_serial_ports",
    # SSH
    "SshConfig",
    "SshTransport",
    "PasswordAuth",
    "KeyFileAuth",
]
