"""
This module provides the hardware abstraction layer for serial ports, using
PySerial for port discovery and data transfer. Streams created here feed their
received data into interval packetizers.
"""

# .py files
from .UartStream import *
from .UartManager import *
