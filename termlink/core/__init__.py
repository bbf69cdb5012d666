"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .telemetry import Telemetry, get_telemetry
from .channels import Sender, Receiver, HostKeyDecision, channel
from .connection import Connection, ConnectionState, ConnectionType
from .events import (
    Connected,
    DataReceived,
    Disconnected,
    Error,
    HostKeyUnknown,
    ConnectionEvent,
    SendData,
    Disconnect,
    ConnectionCommand,
)
from .actor import ConnectionActor, spawn_connection_actor

__all__ = [
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "Telemetry",
    "get_telemetry",
    "Sender",
    "Receiver",
    "HostKeyDecision",
    "channel",
    "Connection",
    "ConnectionState",
    "ConnectionType",
    "Connected",
    "DataReceived",
    "Disconnected",
    "Error",
    "HostKeyUnknown",
    "ConnectionEvent",
    "SendData",
    "Disconnect",
    "ConnectionCommand",
    "ConnectionActor",
    "spawn_connection_actor",
]
