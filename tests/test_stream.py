import pytest
import serial

from interbyte import InterbyteHalException, IntervalPacketizer, Stream
from interbyte.hal import UartDevice, UartStream

from conftest import FakePortInfo, FakeSerialPort


@pytest.fixture
def uart(clock, collector):
    stream = UartStream()
    stream.port = FakeSerialPort("/dev/ttyUSB0")
    stream.port_info = FakePortInfo("/dev/ttyUSB0")
    stream.packetizer = IntervalPacketizer(interval=30, max_buffer_size=64, stream=stream, clock=clock)
    stream.packetizer.on_rx_packet = collector
    stream.device = UartDevice("/dev/ttyUSB0", stream)
    return stream


@pytest.mark.parametrize("method, args", [("open", ()), ("close", ()), ("write", (b"x",)), ("process", ())])
def test_base_stream_stubs_raise(method, args):
    with pytest.raises(InterbyteHalException):
        getattr(Stream(), method)(*args)


def test_received_data_becomes_packets(uart, collector, clock):
    assert uart.open()
    uart.port.rx += b"\x01\x02\x03"
    uart.process()
    clock.advance_ms(10)
    uart.port.rx += b"\x04\x05"
    uart.process()
    assert collector.packets == []

    clock.advance_ms(31)
    uart.device.process()
    assert collector.packets == [b"\x01\x02\x03\x04\x05"]


def test_rx_data_callback_can_veto(uart, collector):
    seen = []

    def on_rx_data(data, stream):
        seen.append(data)
        return False

    uart.on_rx_data = on_rx_data
    uart.open()
    uart.port.rx += b"abc"
    uart.process()

    assert seen == [b"abc"]
    assert uart.packetizer.buffered_bytes == 0


def test_close_flushes_packetizer(uart, collector):
    closed = []
    uart.on_close_stream = closed.append
    uart.open()
    uart.port.rx += b"partial"
    uart.process()

    assert uart.close()
    assert collector.packets == [b"partial"]
    assert uart.packetizer.is_closed
    assert closed == [uart]
    assert not uart.port.is_open
    assert not uart.close()


def test_read_failure_closes_session(uart, collector):
    uart.open()
    uart.port.rx += b"abc"
    uart.process()
    uart.port.fail_read = True
    uart.process()

    assert not uart.is_open
    assert collector.packets == [b"abc"]


def test_open_error_is_reported(uart):
    errors = []

    def fail():
        raise serial.serialutil.SerialException("could not open port")

    uart.port.open = fail
    uart.on_open_error = lambda stream, e: errors.append((stream, e))

    assert not uart.open()
    assert len(errors) == 1
    assert errors[0][0] is uart


def test_write(uart):
    sent = []
    uart.on_tx_data = lambda data, stream: sent.append(data)
    uart.open()

    assert uart.write(b"ping") == 4
    assert uart.port.tx == b"ping"
    assert sent == [b"ping"]


def test_string_representation(uart):
    assert str(uart) == "/dev/ttyUSB0"
    assert str(uart.packetizer) == "packetizer on /dev/ttyUSB0"
    assert str(uart.device) == "/dev/ttyUSB0"
