import pytest
import serial


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance_ms(self, ms):
        self.now += ms / 1000.0


class PacketCollector:
    def __init__(self):
        self.packets = []

    def __call__(self, packet, packetizer):
        self.packets.append(packet)


class FakeSerialPort:
    """In-memory stand-in for a PySerial port."""

    def __init__(self, port=None):
        self.port = port
        self.is_open = False
        self.rx = bytearray()
        self.tx = bytearray()
        self.fail_read = False

    def open(self):
        self.is_open = True

    def close(self):
        self.is_open = False

    @property
    def in_waiting(self):
        if self.fail_read:
            raise serial.serialutil.SerialException("device reports readiness to read but returned no data")
        return len(self.rx)

    def read(self, size):
        data = bytes(self.rx[:size])
        del self.rx[:size]
        return data

    def write(self, data):
        self.tx += data
        return len(data)


class FakePortInfo:
    def __init__(self, device, vid=0x2458):
        self.device = device
        self.vid = vid


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def collector():
    return PacketCollector()
