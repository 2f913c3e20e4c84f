from .common import *
from .Exceptions import *

class Stream:
    """Base stream class to manage bidirectional data streams.

    This class represents a data stream and is optionally associated with a
    device and/or a packetizer to manage connectivity monitoring and message
    segmentation. However, it is fundamentally separate from these higher and
    lower layers in the communication stack, and internally manages only
    reception and transmission of data.

    This class should not be used directly, but rather used as a base for child
    classes that use specific low-level communication drivers. As a minimum, a
    child class must implement the `open()`, `close()`, `write()`, and
    `process()` methods."""

    def __init__(self, device=None, packetizer=None):
        """Initializes a stream instance.

        :param device: Device which manages this stream, if one exists
        :type device: UartDevice

        :param packetizer: Packetizer which received data is fed into, if one
            exists
        :type packetizer: IntervalPacketizer

        A device (which has a stream) and packetizer (which a stream has) may be
        supplied at instantiation, or later if required. Each packetizer holds
        the buffer for one session on this stream, so child classes close it
        when the stream closes."""

        # these attributes may be updated by the application
        self.device = device
        self.packetizer = packetizer
        self.on_open_stream = None
        self.on_close_stream = None
        self.on_open_error = None
        self.on_rx_data = None
        self.on_tx_data = None
        self.on_disconnect_device = None
        self.port = None
        self.port_info = None

        # these attributes should only be read externally, not written
        self.is_open = False

        # these attributes are intended to be private
        self._port_open = False

    def __str__(self):
        """Generates the string representation of the stream.

        :returns: String representation of the device
        :rtype: str

        This basic implementation simply uses the string representation of the
        assigned device. If no device is supplied, this will of course return
        the string "None" instead."""

        return str(self.device)

    def open(self):
        """Opens the stream.

        Since no driver is inherent in the base class, you *must* override this
        method in child classes so that a suitable action occurs. Opening a
        stream driven by nothing at all will generate an exception."""

        # child class must implement
        raise InterbyteHalException("Child class has not implemented open() method, cannot use base class stub")

    def close(self):
        """Closes the stream.

        Since no driver is inherent in the base class, you *must* override this
        method in child classes so that a suitable action occurs. Closing a
        stream driven by nothing at all will generate an exception."""

        # child class must implement
        raise InterbyteHalException("Child class has not implemented close() method, cannot use base class stub")

    def write(self, data):
        """Sends outgoing data to the stream.

        :param data: Data buffer to be sent out to the stream
        :type data: bytes

        Since no driver is inherent in the base class, you *must* override this
        method in child classes so that a suitable action occurs. Writing data
        to a stream driven by nothing at all will generate an exception."""

        # child class must implement
        raise InterbyteHalException("Child class has not implemented write() method, cannot use base class stub")

    def process(self, mode=ProcessMode.BOTH, force=False):
        """Handle any pending events or data waiting to be processed.

        :param mode: Processing mode defining whether to run for this object,
            sub-objects lower in the management hierarchy (the packetizer in
            this case), or both
        :type mode: int

        :param force: Whether to force processing to run regardless of elapsed
            time since last time (if applicable)
        :type force: bool

        Since no driver is inherent in the base class, you *must* override this
        method in child classes so that a suitable action occurs. Processing a
        stream driven by nothing at all will generate an exception."""

        # child class must implement
        raise InterbyteHalException("Child class has not implemented process() method, cannot use base class stub")

    def _on_rx_data(self, data):
        """Handles incoming data.

        :param data: Data buffer that has just been received
        :type data: bytes

        The application-level data RX callback sees every chunk first. Unless
        it returns `False`, the chunk is then fed into the attached packetizer
        (if any)."""

        run_builtin = True
        if self.on_rx_data:
            run_builtin = self.on_rx_data(data, self)

        if run_builtin != False:
            # accumulate automatically if we have a packetizer attached
            if self.packetizer is not None:
                self.packetizer.feed(data)

    def _close_packetizer(self):
        """Ends the packetizer session tied to this stream, if any.

        Remaining buffered bytes are emitted as a final packet. The closed
        packetizer stays attached for inspection; reopening a stream through a
        manager attaches a new one."""

        if self.packetizer is not None:
            self.packetizer.close()
