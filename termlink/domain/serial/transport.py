"""
Serial transport built on pyserial
"""
import asyncio
from typing import Any, Callable, Optional

import serial

from ...core.connection import Connection, ConnectionState, ConnectionType
from ...core.constants import READ_BUFFER_SIZE
from ...core.events import EventSender
from ...core.exceptions import AlreadyConnectedError, NotConnectedError, TransportError
from ...core.logging import get_logger
from .models import SerialConfig

logger = get_logger(__name__)

PortOpener = Callable[..., Any]


class SerialTransport(Connection):
    """
    Point-to-point serial stream.

    The port is opened through `opener` (serial.serial_for_url by default),
    so both device names ("/dev/ttyUSB0", "COM3") and pyserial URLs
    ("loop://", "socket://host:port") are accepted.
    """

    def __init__(self, config: SerialConfig, opener: Optional[PortOpener] = None):
        self.config = config
        self._opener = opener or serial.serial_for_url
        self._port: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._bytes_sent = 0
        self._bytes_received = 0

    # --------------------
    # Connection management
    # --------------------
    async def connect(self, events: Optional[EventSender] = None) -> None:
        if self._state == ConnectionState.CONNECTED:
            raise AlreadyConnectedError(f"Already connected to {self.config.port}")

        self._state = ConnectionState.CONNECTING
        logger.info(f"Opening serial port {self.config.port} @ {self.config.baudrate}...")

        try:
            port = await asyncio.to_thread(self._opener, self.config.port, **self.config.port_kwargs())
        except (serial.SerialException, OSError, ValueError) as e:
            self._state = ConnectionState.DISCONNECTED
            raise TransportError(f"Unable to open port {self.config.port}: {e}") from e

        self._port = port
        self._state = ConnectionState.CONNECTED
        self._bytes_sent = 0
        self._bytes_received = 0
        logger.info(f"Connected to {self.description()}")

    async def disconnect(self) -> None:
        if self._state == ConnectionState.DISCONNECTED and self._port is None:
            return

        logger.info(f"Closing serial port {self.config.port}...")
        port, self._port = self._port, None
        if port is not None:
            try:
                port.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing {self.config.port}: {e}")

        self._state = ConnectionState.DISCONNECTED
        logger.info(
            f"Disconnected from {self.config.port} "
            f"(sent: {self._bytes_sent} bytes, received: {self._bytes_received} bytes)"
        )

    # --------------------
    # I/O
    # --------------------
    async def send(self, data: bytes) -> int:
        port = self._require_port()
        try:
            written = await asyncio.to_thread(self._write_all, port, data)
        except serial.SerialTimeoutException as e:
            raise TransportError(f"Serial write timed out on {self.config.port}") from e
        except (serial.SerialException, OSError) as e:
            self._state = ConnectionState.ERROR
            raise TransportError(f"Serial write error on {self.config.port}: {e}") from e

        self._bytes_sent += written
        return written

    async def read(self) -> bytes:
        port = self._require_port()
        try:
            waiting = port.in_waiting
            if not waiting:
                await asyncio.sleep(self.config.timeout)
                waiting = port.in_waiting
                if not waiting:
                    return b""
            data = port.read(min(waiting, READ_BUFFER_SIZE))
        except (BlockingIOError, InterruptedError, TimeoutError, serial.SerialTimeoutException):
            return b""
        except (serial.SerialException, OSError) as e:
            self._state = ConnectionState.ERROR
            raise TransportError(f"Serial read error on {self.config.port}: {e}") from e

        if not data:
            # Device reported pending bytes but delivered none: end of stream
            logger.info(f"Serial port {self.config.port} closed by the device")
            self._state = ConnectionState.DISCONNECTED
            return b""

        self._bytes_received += len(data)
        return bytes(data)

    @staticmethod
    def _write_all(port: Any, data: bytes) -> int:
        written = port.write(data)
        port.flush()
        return len(data) if written is None else int(written)

    def _require_port(self) -> Any:
        if self._port is None:
            raise NotConnectedError("Serial port is not connected")
        return self._port

    # --------------------
    # Accessors
    # --------------------
    def state(self) -> ConnectionState:
        return self._state

    def connection_type(self) -> ConnectionType:
        return ConnectionType.SERIAL

    def description(self) -> str:
        return f"{self.config.port} @ {self.config.baudrate}"

    def bytes_sent(self) -> int:
        return self._bytes_sent

    def bytes_received(self) -> int:
        return self._bytes_received
