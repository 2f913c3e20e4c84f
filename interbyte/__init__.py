"""
Interbyte segments protocol-unaware byte streams into packets. Incoming data is
accumulated and released as one packet whenever the sender pauses for a
configured quiet interval, or as soon as a buffer size limit is reached, so
messages on a serial link can be handled as units without knowing anything
about their framing.

The package is split into the packetizer itself, a generic stream class that
feeds it, and a hardware abstraction layer (HAL) for serial ports built on
PySerial, where a manager watches ports and gives every opened port its own
packetizer session. See the submodule documentation for additional detail.
"""

# .py files
from .common import *
from .Exceptions import *

from .IntervalPacketizer import *

from .Stream import *

# submodule folders
from . import hal
