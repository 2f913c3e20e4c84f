import logging
import time

import serial
import serial.tools.list_ports

from .UartStream import *
from ..Exceptions import *
from ..IntervalPacketizer import *

logger = logging.getLogger(__name__)

class UartDevice:
    """Serial device seen by a manager, identified by its port name.

    Each device owns one stream; the packetizer of the current session (if the
    stream has been opened) hangs off that stream."""

    def __init__(self, id, stream, port_info=None):
        self.id = id
        self.stream = stream
        self.port_info = port_info

    def __str__(self):
        return str(self.id)

    @property
    def packetizer(self):
        """Packetizer of the current (or last) session, if any."""
        return self.stream.packetizer if self.stream is not None else None

    def process(self, mode=ProcessMode.BOTH, force=False):
        """Reads pending data from the stream and handles an expired quiet
        interval on its packetizer."""

        if mode in [ProcessMode.BOTH, ProcessMode.SUBS]:
            if self.stream is not None:
                self.stream.process(mode=ProcessMode.BOTH, force=force)

class UartManager:
    """Serial device manager for abstracting stream and packetizer management.

    This class wraps serial port discovery, stream control and packet
    segmentation into a single interface. Each serial port that shows up is
    given a device and stream instance; whenever a stream is opened (manually or
    through the `auto_open` setting) it also gets a fresh packetizer built from
    the manager's interval and buffer size, and that packetizer's session ends
    when the port goes away.

    For many applications, the manager layer is the only one that will have to
    be configured during initialization, and all lower-level interaction can be
    left to the manager instance."""

    AUTO_OPEN_NONE = 0
    AUTO_OPEN_SINGLE = 1
    AUTO_OPEN_ALL = 2

    def __init__(self,
            interval,
            max_buffer_size=IntervalPacketizer.DEFAULT_MAX_BUFFER_SIZE,
            device_class=UartDevice,
            stream_class=UartStream,
            packetizer_class=IntervalPacketizer):
        """Initializes a serial manager instance.

        :param interval: Quiet interval in milliseconds for every packetizer
            created by this manager
        :type interval: float

        :param max_buffer_size: Buffer size limit for every packetizer created
            by this manager
        :type max_buffer_size: int

        :param device_class: Class to use when instantiating new device objects
            upon connection, called with the port name, stream and port info
        :type device_class: UartDevice

        :param stream_class: Class to use when instantiating new stream objects
            upon connection
        :type stream_class: UartStream

        :param packetizer_class: Callable used to create new packetizers for
            opened streams, called with `interval`, `max_buffer_size` and
            `stream` keyword arguments
        :type packetizer_class: IntervalPacketizer

        Packetizer options are validated here, so a bad configuration raises
        `ConfigError` before any port is touched."""

        IntervalPacketizer.check_options(interval, max_buffer_size)

        # these attributes may be updated by the application
        self.port_info_filter = None
        self.check_interval = 1.0
        self.device_class = device_class
        self.stream_class = stream_class
        self.packetizer_class = packetizer_class
        self.on_connect_device = None
        self.on_disconnect_device = None
        self.on_open_stream = None
        self.on_close_stream = None
        self.on_open_error = None
        self.on_rx_data = None
        self.on_tx_data = None
        self.on_rx_packet = None
        self.auto_open = UartManager.AUTO_OPEN_NONE

        # these attributes are intended to be read-only
        self.interval = interval
        self.max_buffer_size = max_buffer_size
        self.devices = {}
        self.streams = {}

        # these attributes are intended to be private
        self._last_scan_time = 0
        self._recently_disconnected_devices = []

    def process(self, mode=ProcessMode.BOTH, force=False):
        """Handle any pending events or data waiting to be processed.

        :param mode: Processing mode defining whether to scan ports, process
            known devices (and through them their streams and packetizers), or
            both
        :type mode: int

        :param force: Whether to scan ports regardless of the time elapsed since
            the last scan
        :type force: bool

        This method must be executed inside of a constant event loop. Ports are
        scanned every `check_interval` seconds; every call reads pending data
        and handles expired quiet intervals."""

        if mode in [ProcessMode.SELF, ProcessMode.BOTH] \
                and (force or time.time() - self._last_scan_time >= self.check_interval):
            self._last_scan_time = time.time()
            self._scan_ports()

        if mode in [ProcessMode.BOTH, ProcessMode.SUBS]:
            for device in list(self.devices.values()):
                device.process(mode=ProcessMode.BOTH, force=force)

    def open_stream(self, device) -> bool:
        """Attaches a new packetizer to a device's stream and opens it.

        :param device: Connected device whose stream should be opened
        :type device: UartDevice

        :returns: Status of open attempt
        :rtype: bool

        A stream that is already open keeps its current packetizer session."""

        stream = self.streams[device.id]
        if stream.is_open:
            return True

        packetizer = self.packetizer_class(interval=self.interval, max_buffer_size=self.max_buffer_size, stream=stream)
        packetizer.on_rx_packet = self.on_rx_packet
        stream.packetizer = packetizer

        return stream.open()

    def _scan_ports(self) -> None:
        """Compares listed serial ports with known devices.

        New ports passing `port_info_filter` become devices (not opened yet)
        and known devices whose port is no longer listed are disconnected,
        which ends their packetizer session."""

        listed = set()
        for port_info in serial.tools.list_ports.comports():
            if port_info.device in self._recently_disconnected_devices:
                # skip reporting this device for one iteration (Windows may
                # still list a port whose pipe has already failed)
                continue

            listed.add(port_info.device)
            if port_info.device in self.devices:
                continue

            # apply filter, skip if it doesn't pass
            if self.port_info_filter is not None and not self.port_info_filter(port_info):
                continue

            device = self._create_device(port_info)
            self.devices[device.id] = device
            logger.debug("device %s connected", device)
            self._on_connect_device(device)

        # clean out list of recently disconnected devices
        del self._recently_disconnected_devices[:]

        for device_id in [device_id for device_id in self.devices if device_id not in listed]:
            logger.debug("device %s no longer listed", device_id)
            self._on_disconnect_device(self.devices[device_id])

    def _create_device(self, port_info):
        """Builds a device and its (unopened) stream for a newly listed port."""

        # make sure the application provided everything necessary
        if self.stream_class is None:
            raise InterbyteHalException("Manager cannot attach stream without defined stream_class attribute")

        # create and configure data stream object
        stream = self.stream_class()
        stream.on_disconnect_device = self._on_disconnect_device # use internal disconnection callback
        stream.on_open_stream = self.on_open_stream
        stream.on_close_stream = self.on_close_stream
        stream.on_open_error = self.on_open_error
        stream.on_rx_data = self.on_rx_data
        stream.on_tx_data = self.on_tx_data

        # create and attach PySerial port instance to stream (not opened yet)
        stream.port = serial.Serial()
        stream.port.port = port_info.device
        stream.port_info = port_info

        device = self.device_class(port_info.device, stream, port_info)
        stream.device = device
        self.streams[device.id] = stream

        return device

    def _on_connect_device(self, device) -> None:
        """Handles serial device connections.

        :param device: Device that has just been connected
        :type device: UartDevice

        After the application callback runs (and unless it returns `False`),
        the stream is opened with a new packetizer if auto opening is
        configured, either for the first device only or for every device."""

        run_builtin = True
        if self.on_connect_device is not None:
            # trigger the app-level connection callback
            run_builtin = self.on_connect_device(device)

        if run_builtin != False and self.auto_open != UartManager.AUTO_OPEN_NONE:
            open_stream = False
            if self.auto_open == UartManager.AUTO_OPEN_ALL:
                # every connection opens a new stream
                open_stream = True
            if self.auto_open == UartManager.AUTO_OPEN_SINGLE:
                # open this stream only if it is the first connected device
                open_stream = len(self.devices) == 1

            if open_stream:
                self.open_stream(device)

    def _on_disconnect_device(self, device) -> None:
        """Handles device disconnections.

        :param device: Device that has just been disconnected
        :type device: UartDevice

        Reached either from a port scan or from the stream itself when its port
        fails. The device is forgotten first and the stream (and with it the
        packetizer session) closed before the application callback runs, once
        per disconnection."""

        if self.devices.pop(device.id, None) is None:
            # already disconnected
            return

        # mark as recently disconnected
        self._recently_disconnected_devices.append(device.id)

        # close and remove stream if it is open and/or just present
        stream = self.streams.pop(device.id, None)
        if stream is not None:
            stream.on_disconnect_device = None
            stream.close()

        if self.on_disconnect_device is not None:
            # trigger the app-level disconnection callback
            self.on_disconnect_device(device)
