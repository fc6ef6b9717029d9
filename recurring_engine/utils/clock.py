"""Wall-clock access, read only at the service boundary"""

import time


def now_millis() -> int:
    """Current epoch time in milliseconds"""
    return time.time_ns() // 1_000_000
