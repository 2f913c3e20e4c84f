import logging

import serial

from ..Stream import *

logger = logging.getLogger(__name__)

class UartStream(Stream):
    """Serial stream class providing a bidirectional data stream to a serial device.

    This class allows reading to and writing from a serial device, using PySerial
    as the low-level driver. Everything read from the port is fed into the
    attached packetizer, and the packetizer session ends when the port
    closes."""

    def __str__(self):
        """Generates the string representation of the serial stream.

        :returns: String representation of the stream
        :rtype: str
        """

        if self.port_info is not None:
            return self.port_info.device
        if self.port is not None and self.port.port is not None:
            return self.port.port
        return "unidentified stream"

    def open(self) -> bool:
        """Opens the serial stream.

        :returns: Status of open attempt
        :rtype: bool

        This opens the serial port if it is not already open. Failures are
        reported through the `on_open_error` callback rather than raised."""

        # don't start if we're already running
        if not self.is_open:
            try:
                if not self.port.is_open:
                    self.port.open()
                    self._port_open = True
                if self.on_open_stream is not None:
                    # trigger application callback
                    self.on_open_stream(self)

                self.is_open = True
                logger.debug("opened %s", self)
            except serial.serialutil.SerialException as e:
                logger.debug("unable to open %s: %s", self, e)
                if self.on_open_error is not None:
                    # trigger application callback
                    self.on_open_error(self, e)

        return self.is_open

    def close(self) -> bool:
        """Closes the serial stream.

        :returns: Status of close attempt
        :rtype: bool

        This closes the serial port if it is currently open, which also closes
        the attached packetizer (emitting any bytes still buffered)."""

        # don't close if we're not open
        if self.is_open:
            # trigger appropriate closure/disconnection callbacks
            self._cleanup_port_closure()
            return True

        # already closed if we got here
        return False

    def write(self, data) -> int:
        """Writes data to the serial stream.

        :param data: Data buffer to be sent out to the stream
        :type data: bytes

        :returns: Number of bytes written to the stream, or False on failure
        :rtype: int
        """

        if self.on_tx_data is not None:
            # trigger application callback
            self.on_tx_data(data, self)

        try:
            result = self.port.write(data)
        except serial.serialutil.SerialException as e:
            logger.debug("write to %s failed: %s", self, e)
            result = False

        return result

    def process(self, mode=ProcessMode.BOTH, force=False) -> None:
        """Handle any pending events or data waiting to be processed.

        :param mode: Processing mode defining whether to run for this object,
            sub-objects lower in the management hierarchy (the packetizer in
            this case), or both
        :type mode: int

        :param force: Whether to force processing to run regardless of elapsed
            time since last time (if applicable)
        :type force: bool

        This method must be executed inside of a constant event loop to read
        incoming data. Calling this method will automatically call it on the
        attached packetizer so that expired quiet intervals are handled."""

        try:
            # check for available data
            if mode in [ProcessMode.SELF, ProcessMode.BOTH] \
                    and self.is_open \
                    and self.port.is_open \
                    and self.port.in_waiting != 0:
                # read all available data
                data = self.port.read(self.port.in_waiting)

                # pass data to internal receive callback
                self._on_rx_data(data)

        except (OSError, serial.serialutil.SerialException) as e:
            # read failed, probably port closed or device removed
            logger.debug("read from %s failed: %s", self, e)
            self._cleanup_port_closure()
            return

        # allow associated packetizer to process immediately
        if mode in [ProcessMode.BOTH, ProcessMode.SUBS]:
            if self.packetizer is not None:
                self.packetizer.process(mode=ProcessMode.BOTH, force=force)

    def _cleanup_port_closure(self) -> None:
        """Handle a closed port cleanly.

        A serial port may close due to device removal (unexpected) or due to
        stream closure (expected). In either case the packetizer session ends
        and the internal port closure status value is updated here, and in the
        case of an unexpected closure, the device disconnection callback is
        triggered."""

        # mark data stream publicly closed
        self.is_open = False

        # flush whatever the session still holds
        self._close_packetizer()

        if self.on_close_stream is not None:
            # trigger port closure callback
            self.on_close_stream(self)

        # close the port now if necessary (indicates device removal if so)
        if self._port_open:
            try:
                # might fail if the underlying port is already gone
                self.port.close()
            except (OSError, serial.serialutil.SerialException) as e:
                logger.debug("closing %s failed, device removed: %s", self, e)
                if self.on_disconnect_device:
                    # trigger application callback
                    self.on_disconnect_device(self.device)
            finally:
                # mark port privately closed
                self._port_open = False

        logger.debug("closed %s", self)
