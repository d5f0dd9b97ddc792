# UUID version 7: a 48 bit unix millisecond timestamp followed by random
# bits, so public ids sort roughly by creation time.
# Repo: https://github.com/oittaa/uuid6-python
import secrets
import time
import uuid

_last_v7_timestamp = None


def uuid7() -> uuid.UUID:
    global _last_v7_timestamp

    nanoseconds = time.time_ns()
    if _last_v7_timestamp is not None and nanoseconds <= _last_v7_timestamp:
        nanoseconds = _last_v7_timestamp + 1
    _last_v7_timestamp = nanoseconds
    timestamp_ms, timestamp_ns = divmod(nanoseconds, 10**6)
    subsec = timestamp_ns * 2**20 // 10**6
    uuid_int = (timestamp_ms & 0xFFFFFFFFFFFF) << 80
    uuid_int |= (subsec >> 8) << 64
    uuid_int |= (subsec & 0xFF) << 54
    uuid_int |= secrets.randbits(54)
    # Set the variant to RFC 4122 and the version number
    uuid_int &= ~(0xC000 << 48)
    uuid_int |= 0x8000 << 48
    uuid_int &= ~(0xF000 << 64)
    uuid_int |= 7 << 76
    return uuid.UUID(int=uuid_int)


def uuid7_str() -> str:
    return str(uuid7())
