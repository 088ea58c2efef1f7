"""Package formats, event markers and the sizes of event records."""

from __future__ import annotations

from enum import IntEnum

SYSTEM_UNDEFINED_32BIT_VALUE = 0x80000000
SYSTEM_UNDEFINED_16BIT_VALUE = 0x8000
UNDEFINED_MEASURE_VALUE = 0xFFFFFFFF


class PackageError(ValueError):
    """Raised when a package or one of its records is malformed."""


class PackageFormat(IntEnum):
    """Format byte of a data package."""

    DATA = 0
    EVENTS = 1
    FULL_FAILURE_STATES = 2
    FULL_ACCIDENT_STATES = 5
    FULL_OBJECT_STATES = 6
    HEARTBEAT = 7
    CHANGE_OBJECT_STATES = 8
    CHANGE_FAILURE_STATES = 9
    CHANGE_NOT_RESPONDING_DEVICES = 10


class EventType(IntEnum):
    """Marker byte that starts each record in an events package."""

    FAILURE_INFO = 1
    TIME_MEASUREMENT = 2
    NO_CONNECTION_WITH_DEVICE = 3
    FAILURE_PROGNOSIS_ALGORITHM_INFO = 4
    NWA_LEAVE_INFO = 5
    NWA_STATE_CHANGE_INFO = 6
    ACCIDENT_INFO = 7
    OBJECT_STATE = 8


_RECORD_SIZES = {
    EventType.FAILURE_INFO: 18,
    EventType.TIME_MEASUREMENT: 13,
    EventType.NO_CONNECTION_WITH_DEVICE: 18,
    EventType.FAILURE_PROGNOSIS_ALGORITHM_INFO: 21,
    EventType.NWA_LEAVE_INFO: 22,
    # Minimal size: the record is followed by a variable list of states.
    EventType.NWA_STATE_CHANGE_INFO: 13,
    EventType.ACCIDENT_INFO: 26,
    EventType.OBJECT_STATE: 7,
}


def event_record_size(marker: int) -> int:
    """Return the size in bytes, marker included, of a record starting with ``marker``."""
    try:
        return _RECORD_SIZES[EventType(marker)]
    except ValueError:
        raise PackageError(f"unknown marker {marker}") from None