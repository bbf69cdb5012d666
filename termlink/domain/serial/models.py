"""
Serial domain models
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

import serial

from ...core.constants import (
    DEFAULT_BAUDRATE,
    DEFAULT_SERIAL_TIMEOUT,
    DEFAULT_SERIAL_WRITE_TIMEOUT,
)


class DataBits(Enum):
    """Character size"""
    FIVE = serial.FIVEBITS
    SIX = serial.SIXBITS
    SEVEN = serial.SEVENBITS
    EIGHT = serial.EIGHTBITS


class Parity(Enum):
    """Parity checking"""
    NONE = serial.PARITY_NONE
    ODD = serial.PARITY_ODD
    EVEN = serial.PARITY_EVEN


class StopBits(Enum):
    """Number of stop bits"""
    ONE = serial.STOPBITS_ONE
    TWO = serial.STOPBITS_TWO


class FlowControl(Enum):
    """Flow control mode"""
    NONE = "none"
    HARDWARE = "hardware"
    SOFTWARE = "software"


@dataclass(frozen=True)
class SerialConfig:
    """Serial connection configuration"""
    port: str
    baudrate: int = DEFAULT_BAUDRATE
    data_bits: DataBits = DataBits.EIGHT
    parity: Parity = Parity.NONE
    stop_bits: StopBits = StopBits.ONE
    flow_control: FlowControl = FlowControl.NONE
    timeout: float = DEFAULT_SERIAL_TIMEOUT  # read poll, seconds
    write_timeout: float = DEFAULT_SERIAL_WRITE_TIMEOUT

    @classmethod
    def from_params(
        cls,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        data_bits: int = 8,
        parity: str = "None",
        stop_bits: int = 1,
        flow_control: str = "None",
        timeout_ms: int = int(DEFAULT_SERIAL_TIMEOUT * 1000),
    ) -> "SerialConfig":
        """
        Build a configuration from loose user values.

        Unrecognised values fall back to 8 data bits, no parity, one stop
        bit and no flow control.

        Args:
            port: Device name or pyserial URL
            baudrate: Line speed
            data_bits: 5, 6, 7 or 8
            parity: "None", "Odd" or "Even" (case-insensitive)
            stop_bits: 1 or 2
            flow_control: "None", "Hardware" or "Software" (case-insensitive)
            timeout_ms: Read timeout in milliseconds

        Returns:
            SerialConfig instance
        """
        return cls(
            port=port,
            baudrate=int(baudrate),
            data_bits={
                5: DataBits.FIVE,
                6: DataBits.SIX,
                7: DataBits.SEVEN,
            }.get(int(data_bits), DataBits.EIGHT),
            parity={
                "odd": Parity.ODD,
                "even": Parity.EVEN,
            }.get(str(parity).lower(), Parity.NONE),
            stop_bits=StopBits.TWO if int(stop_bits) == 2 else StopBits.ONE,
            flow_control={
                "hardware": FlowControl.HARDWARE,
                "software": FlowControl.SOFTWARE,
            }.get(str(flow_control).lower(), FlowControl.NONE),
            timeout=max(int(timeout_ms), 1) / 1000,
        )

    def port_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for serial.serial_for_url / serial.Serial"""
        return {
            "baudrate": self.baudrate,
            "bytesize": self.data_bits.value,
            "parity": self.parity.value,
            "stopbits": self.stop_bits.value,
            "xonxoff": self.flow_control is FlowControl.SOFTWARE,
            "rtscts": self.flow_control is FlowControl.HARDWARE,
            "timeout": self.timeout,
            "write_timeout": self.write_timeout,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "port": self.port,
            "baudrate": self.baudrate,
            "data_bits": self.data_bits.value,
            "parity": self.parity.name.capitalize(),
            "stop_bits": int(self.stop_bits.value),
            "flow_control": self.flow_control.name.capitalize(),
            "timeout_ms": int(self.timeout * 1000),
        }


@dataclass(frozen=True)
class SerialPortInfo:
    """Serial port detected on the system"""
    device: str
    manufacturer: str = ""
    description: str = ""

    @property
    def label(self) -> str:
        """Display label: device plus whatever USB metadata is known"""
        details = " - ".join(part for part in (self.description, self.manufacturer) if part)
        return f"{self.device} ({details})" if details else self.device
