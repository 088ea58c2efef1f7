"""Event records carried by events and full-state packages."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple

from apkdk.formats import PackageError
from apkdk.timeutils import time_from_unix_microseconds

_OBJECT_STATE = struct.Struct("<IH")
_FAILURE = struct.Struct("<IIBQ")
_FP = struct.Struct("<IIiQ")
_NWA_STATE_CHANGE = struct.Struct("<Ii")
_NWA_LEAVE = struct.Struct("<IIiBQ")
_ACCIDENT = struct.Struct("<BiIQQ")


def _unpack(layout: struct.Struct, data: bytes, what: str) -> tuple:
    try:
        return layout.unpack_from(data)
    except struct.error:
        raise PackageError(
            f"{what} record needs {layout.size} bytes, got {len(data)}"
        ) from None


class ObjectFailureKey(NamedTuple):
    """Identifies a failure of an object."""

    object_id: int
    failure_id: int


class ObjectAccidentKey(NamedTuple):
    """Identifies an accident of an object."""

    object_id: int
    accident_id: int


@dataclass(frozen=True)
class ObjectFailureEvent:
    """A failure that started or ended on an object."""

    object_id: int
    failure_id: int
    is_started: bool
    event_time: datetime

    @property
    def key(self) -> ObjectFailureKey:
        return ObjectFailureKey(self.object_id, self.failure_id)


@dataclass(frozen=True)
class ObjectFpEvent:
    """A step of a failure prognosis algorithm reached by an object."""

    object_id: int
    algorithm_id: int
    step_index: int
    event_time: datetime


@dataclass(frozen=True)
class ObjectNwaLeaveEvent:
    """An object leaving or returning to a normal working state.

    ``state_id`` is the state left when ``is_started`` is true, otherwise the
    state returned to.
    """

    object_id: int
    algorithm_id: int
    state_id: int
    is_started: bool
    event_time: datetime


@dataclass(frozen=True)
class ObjectAccidentEvent:
    """An accident of an object.

    ``accident_type`` is 1 for leaving the normal working state (with
    ``algorithm_id`` -1) and 2 for a triggered prognosis algorithm.
    ``end_time`` is the epoch while the accident is still open.
    """

    object_id: int
    accident_type: int
    algorithm_id: int
    start_time: datetime
    end_time: datetime

    @property
    def key(self) -> ObjectAccidentKey:
        return ObjectAccidentKey(self.object_id, self.algorithm_id)


@dataclass(frozen=True)
class ObjectNwaStateChangeEvent:
    """A change of an object's normal working state."""

    object_id: int
    nwa_state_id: int
    event_time: datetime


@dataclass
class PackageEvents:
    """Events collected from an events package, keyed by object."""

    object_states: dict[int, int] = field(default_factory=dict)
    failure_changes: dict[ObjectFailureKey, ObjectFailureEvent] = field(
        default_factory=dict
    )
    accident_changes: dict[ObjectAccidentKey, ObjectAccidentEvent] = field(
        default_factory=dict
    )
    fp_changes: dict[int, ObjectFpEvent] = field(default_factory=dict)
    nwa_changes: dict[int, ObjectNwaLeaveEvent] = field(default_factory=dict)
    nwa_state_changes: dict[int, ObjectNwaStateChangeEvent] = field(
        default_factory=dict
    )

    def objects(self) -> set[int]:
        """Return the identifiers of every object any event refers to."""
        result = set(self.object_states)
        result.update(self.fp_changes)
        result.update(self.nwa_changes)
        result.update(self.nwa_state_changes)
        result.update(key.object_id for key in self.failure_changes)
        result.update(key.object_id for key in self.accident_changes)
        return result


def parse_object_state(data: bytes) -> tuple[int, int]:
    """Return ``(object_id, state)`` from an object state record body."""
    object_id, state = _unpack(_OBJECT_STATE, data, "object state")
    return object_id, state


def parse_failure_event(data: bytes) -> ObjectFailureEvent:
    """Decode a failure record body."""
    object_id, failure_id, started, mks = _unpack(_FAILURE, data, "failure")
    return ObjectFailureEvent(
        object_id=object_id,
        failure_id=failure_id,
        is_started=started != 0,
        event_time=time_from_unix_microseconds(mks),
    )


def parse_fp_event(data: bytes) -> ObjectFpEvent:
    """Decode a failure prognosis algorithm record body."""
    algorithm_id, object_id, step_index, mks = _unpack(
        _FP, data, "failure prognosis"
    )
    return ObjectFpEvent(
        object_id=object_id,
        algorithm_id=algorithm_id,
        step_index=step_index,
        event_time=time_from_unix_microseconds(mks),
    )


def parse_nwa_state_change(data: bytes) -> tuple[int, int]:
    """Return ``(object_id, state_id)`` from one entry of a state change list."""
    object_id, state_id = _unpack(_NWA_STATE_CHANGE, data, "state change")
    return object_id, state_id


def parse_nwa_leave_event(data: bytes) -> ObjectNwaLeaveEvent:
    """Decode a record of leaving or returning to a normal working state."""
    object_id, algorithm_id, state_id, started, mks = _unpack(
        _NWA_LEAVE, data, "state leave"
    )
    return ObjectNwaLeaveEvent(
        object_id=object_id,
        algorithm_id=algorithm_id,
        state_id=state_id,
        is_started=started != 0,
        event_time=time_from_unix_microseconds(mks),
    )


def parse_accident_event(data: bytes) -> ObjectAccidentEvent:
    """Decode an accident record body."""
    accident_type, algorithm_id, object_id, start, end = _unpack(
        _ACCIDENT, data, "accident"
    )
    return ObjectAccidentEvent(
        object_id=object_id,
        accident_type=accident_type,
        algorithm_id=algorithm_id,
        start_time=time_from_unix_microseconds(start),
        end_time=time_from_unix_microseconds(end),
    )