import collections
import logging
import math
import numbers
import threading
import time

from .common import *
from .Exceptions import *

logger = logging.getLogger(__name__)

class IntervalPacketizer:
    """Packetizer class for protocol-unaware byte streams.

    This class accumulates incoming bytes and releases them as a single packet
    whenever the byte source goes quiet for a configured interval, or as soon as
    the accumulation buffer reaches its size limit. Nothing about the content of
    the data is inspected, so it can segment traffic on any serial link where
    the sender leaves a gap between messages.

    The quiet interval behaves like a debounce timer: every call to `feed()`
    restarts it. Expired intervals are detected either by calling `process()`
    from an event loop (the same way parser/generator objects are driven from a
    stream, device, or manager) or by a background watcher thread started with
    `start()`."""

    DEFAULT_MAX_BUFFER_SIZE = 65536

    def __init__(self, interval, max_buffer_size=DEFAULT_MAX_BUFFER_SIZE, stream=None, clock=time.monotonic):
        """Creates a new packetizer instance.

        :param interval: Period of silence in milliseconds after which buffered
            data is emitted as a packet
        :type interval: float

        :param max_buffer_size: Number of buffered bytes which forces a packet
            to be emitted immediately
        :type max_buffer_size: int

        :param stream: Stream attached to this packetizer, if any
        :type stream: Stream

        :param clock: Monotonic time source in seconds
        :type clock: callable

        Invalid options raise `ConfigError` before any state is created. Assign
        the `on_rx_packet` attribute to receive packets; it is called with the
        packet (as an immutable `bytes` object) and this packetizer."""

        self.check_options(interval, max_buffer_size)

        # these attributes may be updated by the application
        self.stream = stream
        self.on_rx_packet = None

        # these attributes should only be read externally, not written
        self.last_rx_packet = None
        self.is_running = False
        self.is_closed = False

        # these attributes are intended to be private
        self._interval = interval
        self._max_buffer_size = max_buffer_size
        self._clock = clock
        self._rx_buffer = bytearray()
        self._pending_input = collections.deque()
        self._feeding = False
        self._deadline = None
        self._lock = threading.RLock()
        self._deadline_changed = threading.Condition(self._lock)
        self._monitor_thread = None
        self._running_thread_ident = 0

    def __str__(self):
        if self.stream is not None:
            return "packetizer on %s" % self.stream
        else:
            return "packetizer on unidentified stream"

    @classmethod
    def check_options(cls, interval, max_buffer_size=DEFAULT_MAX_BUFFER_SIZE):
        """Validates packetizer options without building an instance.

        :param interval: Quiet interval in milliseconds
        :type interval: float

        :param max_buffer_size: Buffer size limit in bytes
        :type max_buffer_size: int

        Raises `ConfigError` for a non-numeric or non-finite interval, an
        interval below one millisecond, or a buffer size that is not a positive
        integer. Booleans are rejected even though Python treats them as
        integers."""

        if isinstance(interval, bool) or not isinstance(interval, numbers.Real) or not math.isfinite(interval):
            raise ConfigError("interval must be a finite number")

        if interval < 1:
            raise ConfigError("interval must be greater than 0")

        if isinstance(max_buffer_size, bool) or not isinstance(max_buffer_size, numbers.Integral) or max_buffer_size < 1:
            raise ConfigError("maxBufferSize must be greater than 0")

    @classmethod
    def from_options(cls, options, stream=None, clock=time.monotonic):
        """Creates a packetizer from an options mapping.

        :param options: Mapping with an `interval` key and optionally a
            `max_buffer_size` (or `maxBufferSize`) key
        :type options: dict

        :param stream: Stream attached to the new packetizer, if any
        :type stream: Stream

        :param clock: Monotonic time source in seconds
        :type clock: callable
        """

        options = dict(options)
        if "maxBufferSize" in options:
            if "max_buffer_size" in options:
                raise ConfigError("max_buffer_size given twice")
            options["max_buffer_size"] = options.pop("maxBufferSize")

        unknown = sorted(set(options) - {"interval", "max_buffer_size"})
        if unknown:
            raise ConfigError("unknown packetizer option(s): %s" % ", ".join(unknown))

        if "interval" not in options:
            raise ConfigError("interval must be a finite number")

        return cls(stream=stream, clock=clock, **options)

    @property
    def interval(self):
        """Quiet interval in milliseconds."""
        return self._interval

    @property
    def max_buffer_size(self):
        """Buffer size limit in bytes."""
        return self._max_buffer_size

    @property
    def buffered_bytes(self):
        """Number of bytes waiting to be emitted."""
        with self._lock:
            return len(self._rx_buffer)

    def feed(self, input_data):
        """Accumulate one or more bytes of incoming data.

        :param input_data: Data to buffer (bytes-like, list of integers, or a
            single integer)
        :type input_data: bytes

        Any pending quiet interval is canceled, since new data means the source
        has not gone quiet. The data is then appended to the buffer, and each
        time the buffer reaches `max_buffer_size` it is emitted immediately, so
        a large chunk may produce several packets in one call. If bytes remain
        buffered afterwards, a new quiet interval starts now.

        Empty input is accepted and only restarts the interval. Data fed after
        `close()` is ignored. Data fed from a packet callback while a chunk is being
        split is appended after the rest of that chunk."""

        if isinstance(input_data, (int,)):
            # given a single integer, so convert it to bytes first
            input_data = bytes([input_data])
        elif not isinstance(input_data, (bytes,)):
            # given a list or other buffer, so convert it to bytes first
            input_data = bytes(input_data)

        with self._lock:
            if self.is_closed:
                logger.debug("%s ignoring %d byte(s) fed after close", self, len(input_data))
                return

            if self._feeding:
                # called from a packet callback mid-chunk, append after the chunk
                self._pending_input.append(input_data)
                return

            # new activity restarts the quiet period
            self._deadline = None

            self._feeding = True
            try:
                while input_data is not None and not self.is_closed:
                    offset = 0
                    while offset < len(input_data) and not self.is_closed:
                        room = self._max_buffer_size - len(self._rx_buffer)
                        chunk = input_data[offset:offset + room]
                        self._rx_buffer += chunk
                        offset += len(chunk)

                        if len(self._rx_buffer) >= self._max_buffer_size:
                            self._flush(FlushReason.SIZE)

                    input_data = self._pending_input.popleft() if self._pending_input else None
            finally:
                self._feeding = False
                self._pending_input.clear()

            if not self.is_closed and len(self._rx_buffer) > 0:
                self._deadline = self._clock() + self._interval / 1000.0

            self._deadline_changed.notify_all()

    def process(self, mode=ProcessMode.BOTH, force=False):
        """Handle an expired quiet interval, if any.

        :param mode: Processing mode (accepted for symmetry with the rest of the
            management hierarchy; a packetizer has no sub-objects)
        :type mode: int

        :param force: Accepted for symmetry; the quiet interval is always
            measured in full and never cut short
        :type force: bool

        :returns: Packet emitted by this call, if any
        :rtype: bytes

        Call this from your event loop (directly, or through the stream, device,
        or manager that owns this packetizer) if the background watcher is not
        running."""

        with self._lock:
            if self._deadline is not None and self._clock() >= self._deadline:
                self._deadline = None
                return self._flush(FlushReason.IDLE)

        return None

    def flush(self):
        """Emit buffered data immediately.

        :returns: Packet emitted by this call, or None if nothing was buffered
        :rtype: bytes

        The pending quiet interval is canceled along with the flush."""

        with self._lock:
            self._deadline = None
            self._deadline_changed.notify_all()
            return self._flush(FlushReason.MANUAL)

    def reset(self):
        """Discards buffered data and cancels the quiet interval without
        emitting anything."""

        with self._lock:
            self._rx_buffer = bytearray()
            self._deadline = None
            self._deadline_changed.notify_all()

    def start(self):
        """Starts watching the quiet interval in a background thread.

        Once started, expired intervals are handled without any calls to
        `process()`, and the `on_rx_packet` callback runs in the watcher thread."""

        with self._lock:
            # don't start if we're already running
            if self.is_running or self.is_closed:
                return

            self._monitor_thread = threading.Thread(target=self._watch_deadline, name="%s watcher" % self)
            self._monitor_thread.daemon = True
            self._monitor_thread.start()
            self._running_thread_ident = self._monitor_thread.ident
            self.is_running = True

        logger.debug("%s started watcher", self)

    def stop(self):
        """Stops the background watcher, if running.

        Any pending quiet interval stays pending and can still be handled with
        `process()`. This waits for the watcher thread to finish unless it is
        called from a packet callback running in that thread."""

        with self._lock:
            # don't stop if we're not running
            if not self.is_running:
                return

            thread = self._monitor_thread
            self._monitor_thread = None
            self._running_thread_ident = 0
            self.is_running = False
            self._deadline_changed.notify_all()

        if thread is not threading.current_thread():
            thread.join()

        logger.debug("%s stopped watcher", self)

    def close(self, flush=True):
        """Ends the packetizer session.

        :param flush: Whether to emit remaining buffered data as a final packet
            (default) or discard it
        :type flush: bool

        :returns: Final packet, if one was emitted
        :rtype: bytes

        The watcher is stopped and the quiet interval canceled, so no callback
        fires after this method returns. Discarded data is reported with a
        warning log message. Closing an already closed packetizer does
        nothing."""

        self.stop()

        with self._lock:
            if self.is_closed:
                return None

            self.is_closed = True
            self._deadline = None

            packet = None
            if flush:
                packet = self._flush(FlushReason.CLOSE)
            elif len(self._rx_buffer) > 0:
                logger.warning("%s discarding %d buffered byte(s) on close", self, len(self._rx_buffer))
                self._rx_buffer = bytearray()

        return packet

    def _flush(self, reason):
        """Emits the buffer as a packet; the caller must hold the lock.

        :param reason: Trigger for this flush (see `FlushReason`)
        :type reason: str

        :returns: Emitted packet, or None if the buffer was empty
        :rtype: bytes

        The buffer is swapped for an empty one before the application callback
        runs, so the callback may safely feed more data. Exceptions raised by
        the callback are logged and never reach the caller."""

        if len(self._rx_buffer) == 0:
            return None

        packet = bytes(self._rx_buffer)
        self._rx_buffer = bytearray()
        self.last_rx_packet = packet
        logger.debug("%s emitting %d byte packet (%s)", self, len(packet), reason)

        if self.on_rx_packet is not None:
            # pass packet to receive callback, buffering carries on if it fails
            try:
                self.on_rx_packet(packet, self)
            except Exception:
                logger.exception("%s packet callback raised", self)

        return packet

    def _watch_deadline(self):
        """Watches the quiet interval until stopped.

        Note that this method is not intended for application use; rather, it
        is executed in a separate thread by `start()`. The deadline is re-read
        under the lock after every wakeup, so an interval canceled by `feed()`,
        `flush()`, `reset()` or `close()` can never fire."""

        with self._lock:
            while self.is_running and self._running_thread_ident == threading.get_ident():
                if self._deadline is None:
                    self._deadline_changed.wait()
                    continue

                remaining = self._deadline - self._clock()
                if remaining > 0:
                    self._deadline_changed.wait(remaining)
                    continue

                self._deadline = None
                self._flush(FlushReason.IDLE)
