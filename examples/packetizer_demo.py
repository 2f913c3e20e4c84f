# check for local development repo in script path and use it for imports
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.realpath(__file__))))

import logging
import time
import interbyte

class App():

    def __init__(self):
        # set up packetizer (emits data after 30ms of silence, or every 16 bytes)
        self.packetizer = interbyte.IntervalPacketizer(interval=30, max_buffer_size=16)
        self.packetizer.on_rx_packet = self.on_rx_packet

    def on_rx_packet(self, packet, packetizer):
        print("[%.03f] RXP: [%s] via %s" % (time.time(), ' '.join(["%02X" % b for b in packet]), packetizer))

def main():
    logging.basicConfig(level=logging.DEBUG)
    app = App()
    app.packetizer.start()

    # feed() call technique 1: actual bytes() object, split by a short gap
    app.packetizer.feed(b"\x01\x02\x03")
    time.sleep(0.01)
    app.packetizer.feed(b"\x04\x05")
    time.sleep(0.1)

    # feed() call technique 2: list of integers, long enough to hit the size limit
    app.packetizer.feed(list(range(40)))
    time.sleep(0.1)

    # feed() call technique 3: single integers
    [app.packetizer.feed(x) for x in [0x54, 0x45, 0x53, 0x54]]

    # end the session, emitting whatever is still buffered
    app.packetizer.close()

if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        print("Ctrl+C detected, terminating script")
        sys.exit(0)
