"""
Tests for the serial transport, its configuration and port listing
"""
import asyncio
from types import SimpleNamespace

import pytest
import serial

from termlink.core.actor import spawn_connection_actor
from termlink.core.connection import ConnectionState, ConnectionType
from termlink.core.events import Connected, DataReceived, Disconnect, Disconnected, SendData
from termlink.core.exceptions import AlreadyConnectedError, NotConnectedError, TransportError
from termlink.domain.serial import (
    DataBits,
    FlowControl,
    Parity,
    SerialConfig,
    SerialPortInfo,
    SerialTransport,
    StopBits,
    list_serial_ports,
)
from termlink.domain.serial import ports as ports_module

from .fakes import collect


class FakePort:
    """
    pyserial stand-in.

    Serves `chunks` in order; once they run out it keeps reporting one
    pending byte while read() returns nothing, which is how a vanished
    device looks.
    """

    def __init__(self, chunks=(), eof=True, fail_reads=False, write_error=None):
        self.chunks = [bytes(c) for c in chunks]
        self.eof = eof
        self.fail_reads = fail_reads
        self.write_error = write_error
        self.written = b""
        self.closed = False

    @property
    def in_waiting(self):
        if self.fail_reads:
            raise serial.SerialException("device reports readiness but returned no data")
        if self.chunks:
            return len(self.chunks[0])
        return 1 if self.eof else 0

    def read(self, size):
        if not self.chunks:
            return b""
        chunk = self.chunks[0]
        data, rest = chunk[:size], chunk[size:]
        if rest:
            self.chunks[0] = rest
        else:
            self.chunks.pop(0)
        return data

    def write(self, data):
        if self.write_error is not None:
            raise self.write_error
        self.written += data
        return len(data)

    def flush(self):
        pass

    def close(self):
        self.closed = True


def make_transport(port, **params):
    opened = []

    def opener(name, **kwargs):
        opened.append((name, kwargs))
        return port

    config = SerialConfig.from_params("/dev/ttyFAKE0", timeout_ms=5, **params)
    transport = SerialTransport(config, opener=opener)
    transport.opened = opened
    return transport


# ============================================================
# Configuration
# ============================================================

def test_from_params_maps_user_values():
    config = SerialConfig.from_params(
        "COM3",
        baudrate=9600,
        data_bits=7,
        parity="even",
        stop_bits=2,
        flow_control="Hardware",
        timeout_ms=500,
    )

    assert config.data_bits is DataBits.SEVEN
    assert config.parity is Parity.EVEN
    assert config.stop_bits is StopBits.TWO
    assert config.flow_control is FlowControl.HARDWARE
    assert config.timeout == 0.5

    kwargs = config.port_kwargs()
    assert kwargs["baudrate"] == 9600
    assert kwargs["bytesize"] == serial.SEVENBITS
    assert kwargs["parity"] == serial.PARITY_EVEN
    assert kwargs["stopbits"] == serial.STOPBITS_TWO
    assert kwargs["rtscts"] is True
    assert kwargs["xonxoff"] is False


def test_from_params_falls_back_on_unknown_values():
    config = SerialConfig.from_params(
        "COM3",
        data_bits=9,
        parity="Mark",
        stop_bits=3,
        flow_control="RTS",
    )

    assert config.data_bits is DataBits.EIGHT
    assert config.parity is Parity.NONE
    assert config.stop_bits is StopBits.ONE
    assert config.flow_control is FlowControl.NONE
    assert config.to_dict()["parity"] == "None"


def test_software_flow_control_enables_xonxoff():
    kwargs = SerialConfig.from_params("COM3", flow_control="software").port_kwargs()
    assert kwargs["xonxoff"] is True
    assert kwargs["rtscts"] is False


# ============================================================
# Transport
# ============================================================

def test_loopback_round_trip():
    async def main():
        transport = SerialTransport(SerialConfig.from_params("loop://", timeout_ms=10))
        await transport.connect()
        assert transport.state() is ConnectionState.CONNECTED

        assert await transport.send(b"AT\r\n") == 4
        received = b""
        for _ in range(100):
            received += await transport.read()
            if len(received) >= 4:
                break

        await transport.disconnect()
        return transport, received

    transport, received = asyncio.run(main())
    assert received == b"AT\r\n"
    assert transport.bytes_sent() == 4
    assert transport.bytes_received() == 4
    assert transport.state() is ConnectionState.DISCONNECTED


def test_connect_passes_settings_to_opener():
    transport = make_transport(FakePort(eof=False), baudrate=57600, parity="odd")
    asyncio.run(transport.connect())

    name, kwargs = transport.opened[0]
    assert name == "/dev/ttyFAKE0"
    assert kwargs["baudrate"] == 57600
    assert kwargs["parity"] == serial.PARITY_ODD
    assert transport.description() == "/dev/ttyFAKE0 @ 57600"
    assert transport.connection_type() is ConnectionType.SERIAL


def test_connect_then_disconnect_without_io():
    async def main():
        transport = make_transport(FakePort(eof=False))
        await transport.connect()
        await transport.disconnect()
        await transport.disconnect()
        return transport

    transport = asyncio.run(main())
    assert transport.state() is ConnectionState.DISCONNECTED
    assert (transport.bytes_sent(), transport.bytes_received()) == (0, 0)


def test_connect_twice_is_rejected():
    async def main():
        transport = make_transport(FakePort(eof=False))
        await transport.connect()
        with pytest.raises(AlreadyConnectedError):
            await transport.connect()

    asyncio.run(main())


def test_open_failure_names_the_port():
    def opener(name, **kwargs):
        raise serial.SerialException("[Errno 16] Device or resource busy")

    transport = SerialTransport(SerialConfig.from_params("COM9"), opener=opener)
    with pytest.raises(TransportError, match="Unable to open port COM9"):
        asyncio.run(transport.connect())
    assert transport.state() is ConnectionState.DISCONNECTED


def test_io_requires_connection():
    transport = make_transport(FakePort())
    with pytest.raises(NotConnectedError):
        asyncio.run(transport.send(b"x"))
    with pytest.raises(NotConnectedError):
        asyncio.run(transport.read())


def test_read_returns_nothing_while_idle():
    async def main():
        transport = make_transport(FakePort(eof=False))
        await transport.connect()
        return transport, await transport.read()

    transport, data = asyncio.run(main())
    assert data == b""
    assert transport.state() is ConnectionState.CONNECTED


def test_zero_length_read_with_pending_bytes_is_end_of_stream():
    async def main():
        transport = make_transport(FakePort(chunks=[b"ok"]))
        await transport.connect()
        first = await transport.read()
        second = await transport.read()
        return transport, first, second

    transport, first, second = asyncio.run(main())
    assert first == b"ok"
    assert second == b""
    assert transport.state() is ConnectionState.DISCONNECTED


def test_read_error_sets_error_state():
    async def main():
        transport = make_transport(FakePort(fail_reads=True))
        await transport.connect()
        with pytest.raises(TransportError):
            await transport.read()
        return transport

    assert asyncio.run(main()).state() is ConnectionState.ERROR


def test_write_timeout_keeps_connection():
    async def main():
        transport = make_transport(FakePort(eof=False, write_error=serial.SerialTimeoutException("Write timeout")))
        await transport.connect()
        with pytest.raises(TransportError, match="timed out"):
            await transport.send(b"x")
        return transport

    transport = asyncio.run(main())
    assert transport.state() is ConnectionState.CONNECTED
    assert transport.bytes_sent() == 0


def test_write_error_sets_error_state():
    async def main():
        transport = make_transport(FakePort(eof=False, write_error=serial.SerialException("write failed")))
        await transport.connect()
        with pytest.raises(TransportError):
            await transport.send(b"x")
        return transport

    assert asyncio.run(main()).state() is ConnectionState.ERROR


def test_actor_reports_vanished_device_as_disconnected():
    async def main():
        port = FakePort(chunks=[b"boot> "])
        transport = make_transport(port)
        commands, events = spawn_connection_actor(transport)
        commands.try_send(SendData(b"help\n"))
        return port, await collect(events)

    port, events = asyncio.run(main())
    assert isinstance(events[0], Connected)
    assert DataReceived(b"boot> ") in events
    assert events[-1] == Disconnected()
    assert port.written == b"help\n"
    assert port.closed


# ============================================================
# Port listing
# ============================================================

def test_list_serial_ports_uses_usb_metadata_only(monkeypatch):
    found = [
        SimpleNamespace(device="/dev/ttyUSB0", vid=0x0403, manufacturer="FTDI", product="FT232R USB UART"),
        SimpleNamespace(device="/dev/ttyS0", vid=None, manufacturer="ignored", product="ignored"),
        SimpleNamespace(device="/dev/ttyACM0", vid=0x2341, manufacturer=None, product=None),
    ]
    monkeypatch.setattr(ports_module.list_ports, "comports", lambda: found)

    ports = list_serial_ports()

    assert ports == [
        SerialPortInfo("/dev/ttyUSB0", "FTDI", "FT232R USB UART"),
        SerialPortInfo("/dev/ttyS0"),
        SerialPortInfo("/dev/ttyACM0"),
    ]
    assert ports[0].label == "/dev/ttyUSB0 (FT232R USB UART - FTDI)"
    assert ports[1].label == "/dev/ttyS0"


def test_list_serial_ports_survives_enumeration_failure(monkeypatch):
    def broken():
        raise OSError("no sysfs")

    monkeypatch.setattr(ports_module.list_ports, "comports", broken)
    assert list_serial_ports() == []


def test_actor_disconnects_loopback_port_without_waiting_for_read_timeout():
    async def main():
        # One second idle read, the CLI default
        transport = SerialTransport(SerialConfig.from_params("loop://", timeout_ms=1000))
        commands, events = spawn_connection_actor(transport)
        assert isinstance(await events.recv(), Connected)
        await asyncio.sleep(0.05)

        loop = asyncio.get_running_loop()
        started = loop.time()
        commands.try_send(Disconnect())
        remaining = await collect(events)
        return transport, remaining, loop.time() - started

    transport, remaining, elapsed = asyncio.run(main())
    assert remaining == [Disconnected()]
    assert elapsed < 0.5
    assert transport.state() is ConnectionState.DISCONNECTED
