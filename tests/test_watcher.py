import threading
import time

from interbyte import IntervalPacketizer


def _collecting_packetizer(**kwargs):
    packets = []
    arrived = threading.Event()
    p = IntervalPacketizer(**kwargs)

    def on_rx_packet(packet, packetizer):
        packets.append(packet)
        arrived.set()

    p.on_rx_packet = on_rx_packet
    return p, packets, arrived


def test_watcher_emits_after_quiet_interval():
    p, packets, arrived = _collecting_packetizer(interval=20)
    p.start()
    try:
        assert p.is_running
        t0 = time.monotonic()
        p.feed(b"\x01\x02\x03")
        assert arrived.wait(2.0)
        assert time.monotonic() - t0 >= 0.02
        assert packets == [b"\x01\x02\x03"]
    finally:
        p.close()
    assert not p.is_running


def test_watcher_restarts_interval_on_activity():
    p, packets, arrived = _collecting_packetizer(interval=100)
    p.start()
    try:
        for b in b"abcde":
            p.feed(b)
            time.sleep(0.01)
        assert packets == []
        assert arrived.wait(2.0)
        assert packets == [b"abcde"]
    finally:
        p.close()


def test_canceled_interval_never_fires():
    p, packets, arrived = _collecting_packetizer(interval=30)
    p.start()
    p.feed(b"abc")
    p.reset()
    time.sleep(0.1)
    assert packets == []

    p.feed(b"def")
    p.close(flush=False)
    time.sleep(0.1)
    assert packets == []
    assert not arrived.is_set()


def test_stop_leaves_interval_for_process():
    p, packets, arrived = _collecting_packetizer(interval=1)
    p.start()
    p.stop()
    p.feed(b"xyz")
    time.sleep(0.05)
    assert packets == []

    assert p.process() == b"xyz"
    assert packets == [b"xyz"]


def test_callback_error_does_not_kill_watcher(caplog):
    packets = []
    arrived = threading.Event()
    p = IntervalPacketizer(interval=10)

    def on_rx_packet(packet, packetizer):
        packets.append(packet)
        if len(packets) == 1:
            raise RuntimeError("consumer failed")
        arrived.set()

    p.on_rx_packet = on_rx_packet
    p.start()
    try:
        p.feed(b"first")
        deadline = time.monotonic() + 2.0
        while not packets and time.monotonic() < deadline:
            time.sleep(0.01)

        p.feed(b"second")
        assert arrived.wait(2.0)
        assert packets == [b"first", b"second"]
        assert "packet callback raised" in caplog.text
    finally:
        p.close()


def test_stop_from_callback():
    p, packets, arrived = _collecting_packetizer(interval=10)
    p.on_rx_packet = lambda packet, packetizer: (packets.append(packet), packetizer.stop(), arrived.set())
    p.start()
    p.feed(b"a")
    assert arrived.wait(2.0)
    assert not p.is_running
    p.close()
    assert packets == [b"a"]
