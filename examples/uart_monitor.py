# check for local development repo in script path and use it for imports
import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.realpath(__file__))))

import time
import interbyte

class App():

    def __init__(self):
        # set up the manager (handles device monitoring, streams and packetizers)
        self.manager = interbyte.hal.UartManager(interval=30)
        self.manager.port_info_filter = lambda port_info: port_info.vid is not None
        self.manager.on_connect_device = self.on_connect_device
        self.manager.on_disconnect_device = self.on_disconnect_device
        self.manager.on_open_stream = self.on_open_stream
        self.manager.on_close_stream = self.on_close_stream
        self.manager.on_open_error = self.on_open_error
        self.manager.on_rx_packet = self.on_rx_packet
        self.manager.auto_open = interbyte.hal.UartManager.AUTO_OPEN_ALL

    def on_connect_device(self, device):
        print("[%.03f] CONNECTED: %s" % (time.time(), device))

    def on_disconnect_device(self, device):
        print("[%.03f] DISCONNECTED: %s" % (time.time(), device))

    def on_open_stream(self, stream):
        print("[%.03f] OPENED: %s" % (time.time(), stream))

    def on_close_stream(self, stream):
        print("[%.03f] CLOSED: %s" % (time.time(), stream))

    def on_open_error(self, stream, e):
        print("[%.03f] OPEN ERROR: %s (%s)" % (time.time(), stream, e))

    def on_rx_packet(self, packet, packetizer):
        print("[%.03f] RXP: [%s] via %s" % (time.time(), ' '.join(["%02X" % b for b in packet]), packetizer))

def main():
    app = App()

    # process device changes, incoming data and quiet intervals forever
    while True:
        app.manager.process()
        time.sleep(0.001)

if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        print("Ctrl+C detected, terminating script")
        sys.exit(0)
