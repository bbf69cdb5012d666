"""
Serial domain
"""
from .models import DataBits, Parity, StopBits, FlowControl, SerialConfig, SerialPortInfo
from .ports import list_serial_ports
from .transport import SerialTransport

__all__ = [
    "DataBits",
    "Parity",
    "StopBits",
    "FlowControl",
    "SerialConfig",
    "SerialPortInfo",
    "list_serial_ports",
    "SerialTransport",
]
