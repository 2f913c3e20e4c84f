"""Interbyte Exception Definitions

These derived exception classes provide a way for Interbyte code to raise
unique exceptions to be caught (optionally) by application code.
"""

class InterbyteException(Exception):
    """Base exception class for any Interbyte-related exception

    This type may be used to catch Interbyte exceptions generally within an
    application, but should not be raised directly. Rather, extend the class
    into something more specific (as in the ConfigError) and then raise that
    instead.
    """

    pass

class InterbyteHalException(InterbyteException):
    """Exception class for any hardware access functions

    Interbyte code raises this type of exception if a base class method is not
    correctly re-implemented in a child class (e.g. `Stream.open` vs.
    `UartStream.open`), or if a manager is asked to attach a stream without
    knowing which stream class to use.
    """

    pass

class ConfigError(InterbyteException, ValueError):
    """Exception class for invalid packetizer options

    Interbyte code raises this type of exception synchronously while building a
    packetizer (or a manager that builds packetizers) with an interval or
    buffer size that cannot be used. No partially configured object survives
    the failure.
    """

    pass
