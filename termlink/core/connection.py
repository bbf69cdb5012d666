"""
Connection abstraction shared by the serial and SSH transports
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .events import EventSender


class ConnectionType(Enum):
    """Supported connection kinds"""
    SERIAL = "serial"
    SSH = "ssh"

    def __str__(self) -> str:
        return "Serial" if self is ConnectionType.SERIAL else "SSH"


class ConnectionState(Enum):
    """Connection lifecycle state"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"

    def __str__(self) -> str:
        return _STATE_LABELS[self]


_STATE_LABELS = {
    ConnectionState.DISCONNECTED: "Disconnected",
    ConnectionState.CONNECTING: "Connecting...",
    ConnectionState.CONNECTED: "Connected",
    ConnectionState.ERROR: "Error",
}


class Connection(ABC):
    """
    Unified interface for byte-stream connections.

    A connection is driven by exactly one owner (the connection actor), so
    implementations keep plain attributes and need no locking. Blocking
    library calls are pushed to worker threads by the implementations.
    """

    def init_event_sender(self, sender: "EventSender") -> None:
        """
        Receive the event channel before connect().

        Default: no-op. Transports that need to ask the consumer something
        during the handshake (SSH host keys) keep the sender.
        """
        pass

    @abstractmethod
    async def connect(self, events: Optional["EventSender"] = None) -> None:
        """
        Establish the connection.

        Args:
            events: Event channel for interactive questions raised during
                the handshake

        Raises:
            AlreadyConnectedError: If already connected
            TransportError: If the endpoint cannot be reached or set up
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the connection; does nothing when already disconnected"""
        pass

    @abstractmethod
    async def send(self, data: bytes) -> int:
        """
        Write raw bytes.

        Returns:
            Number of bytes written

        Raises:
            NotConnectedError: If not connected
            TransportError: On I/O failure
        """
        pass

    @abstractmethod
    async def read(self) -> bytes:
        """
        Poll for incoming bytes.

        Returns b"" when nothing is available. End of stream is reported by
        moving state() to DISCONNECTED, not by raising.
        """
        pass

    @abstractmethod
    def state(self) -> ConnectionState:
        pass

    @abstractmethod
    def connection_type(self) -> ConnectionType:
        pass

    @abstractmethod
    def description(self) -> str:
        """Human-readable endpoint, e.g. COM3 @ 115200 or user@host:22"""
        pass

    @abstractmethod
    def bytes_sent(self) -> int:
        pass

    @abstractmethod
    def bytes_received(self) -> int:
        pass
