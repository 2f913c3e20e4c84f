class ProcessMode:
    SELF = 1
    SUBS = 2
    BOTH = 3

class FlushReason:
    SIZE = "size"
    IDLE = "idle"
    MANUAL = "manual"
    CLOSE = "close"
