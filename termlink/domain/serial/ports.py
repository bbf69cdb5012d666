"""
Serial port enumeration
"""
from typing import List

from serial.tools import list_ports

from ...core.logging import get_logger
from .models import SerialPortInfo

logger = get_logger(__name__)


def list_serial_ports() -> List[SerialPortInfo]:
    """
    List serial ports available on the system.
    
    Manufacturer and description come from USB metadata and are left empty
    for other port kinds.
    
    Returns:
        Detected ports; empty if enumeration fails
    """
    try:
        found = list_ports.comports()
    except Exception as e:
        logger.warning(f"Unable to enumerate serial ports: {e}")
        return []

    ports = []
    for item in found:
        if item.vid is not None:
            manufacturer = item.manufacturer or ""
            description = item.product or ""
        else:
            manufacturer = ""
            description = ""
        ports.append(SerialPortInfo(
            device=item.device,
            manufacturer=manufacturer,
            description=description,
        ))
    return ports
