"""Data packages and the network envelope that carries them."""

from __future__ import annotations

import base64 as _b64
import io
import struct
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO

from apkdk.events import (
    ObjectFailureEvent,
    ObjectFailureKey,
    ObjectNwaStateChangeEvent,
    PackageEvents,
    parse_accident_event,
    parse_failure_event,
    parse_fp_event,
    parse_nwa_leave_event,
    parse_nwa_state_change,
    parse_object_state,
)
from apkdk.formats import EventType, PackageError, PackageFormat, event_record_size
from apkdk.timeutils import time_from_unix_microseconds

_HEADER = struct.Struct("<QiHBBH")
_NETWORK_HEADER = struct.Struct("<ii")
_NWA_COUNT = struct.Struct("<QI")

_OBJECT_STATE_RECORD = 7
_FAILURE_RECORD = 18
_NWA_ENTRY = 8

_EVENT_FORMATS = frozenset(
    {
        PackageFormat.EVENTS,
        PackageFormat.CHANGE_OBJECT_STATES,
        PackageFormat.CHANGE_FAILURE_STATES,
    }
)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    chunk = stream.read(size)
    if chunk is None or len(chunk) != size:
        raise PackageError(f"unexpected end of data while reading {what}")
    return chunk


def _rfc3339(value: datetime) -> str:
    base = value.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{value.microsecond:06d}".rstrip("0")
    if fraction:
        base += "." + fraction
    return base + "Z"


@dataclass
class DataPackage:
    """A package of measurements or events sent by a device."""

    time: int = 0
    device_id: int = 0
    sensor_count: int = 0
    bits_per_sensor: int = 0
    format: int = PackageFormat.DATA
    data_size: int = 0
    data: bytes = b""

    def _header(self) -> bytes:
        return _HEADER.pack(
            self.time,
            self.device_id,
            self.sensor_count,
            self.bits_per_sensor,
            self.format,
            self.data_size,
        )

    def write(self, stream: BinaryIO) -> None:
        """Write the package in its wire form to a binary stream."""
        stream.write(self._header())
        if self.data_size > 0:
            stream.write(bytes(self.data))

    def to_bytes(self) -> bytes:
        """Return the package in its wire form."""
        buffer = io.BytesIO()
        self.write(buffer)
        return buffer.getvalue()

    @classmethod
    def read(cls, stream: BinaryIO) -> DataPackage:
        """Read one package from a binary stream."""
        header = _read_exact(stream, _HEADER.size, "package header")
        time, device_id, sensor_count, bits, fmt, data_size = _HEADER.unpack(header)
        data = b""
        if data_size > 0:
            data = stream.read(data_size) or b""
            if len(data) != data_size:
                raise PackageError("error in data size")
        return cls(
            time=time,
            device_id=device_id,
            sensor_count=sensor_count,
            bits_per_sensor=bits,
            format=fmt,
            data_size=data_size,
            data=data,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> DataPackage:
        """Read one package from the start of ``data``."""
        return cls.read(io.BytesIO(data))

    def verify(self) -> None:
        """Check that every header field fits its wire width.

        Raises PackageError when a field is out of range.
        """
        try:
            self._header()
        except struct.error as exc:
            raise PackageError(f"invalid package header: {exc}") from exc

    def package_time(self) -> datetime:
        """Return the time the package was made."""
        return time_from_unix_microseconds(self.time)

    def base64(self) -> str:
        """Return the wire form encoded as standard Base64."""
        return _b64.b64encode(self.to_bytes()).decode("ascii")

    def is_compressed(self) -> bool:
        """Tell whether a measurement package's data is not plainly packed."""
        if self.format != PackageFormat.DATA:
            return False
        count = self.sensor_count
        if self.bits_per_sensor == 2:
            expected = count // 4 + (1 if count % 4 else 0)
        elif self.bits_per_sensor == 8:
            expected = count
        elif self.bits_per_sensor == 16:
            expected = (count * 2) & 0xFFFF
        elif self.bits_per_sensor == 32:
            expected = (count * 4) & 0xFFFF
        else:
            return False
        return self.data_size != expected

    def parse_full_object_states(self) -> dict[int, int]:
        """Return the state of every object from a full object states package."""
        if self.format != PackageFormat.FULL_OBJECT_STATES:
            raise PackageError("expected full state package format")
        if len(self.data) % _OBJECT_STATE_RECORD:
            raise PackageError("events data size should be 7 * nItems")

        states: dict[int, int] = {}
        for pos in range(0, len(self.data), _OBJECT_STATE_RECORD):
            marker = self.data[pos]
            if marker != EventType.OBJECT_STATE:
                raise PackageError(f"unexpected marker in message {marker}")
            object_id, state = parse_object_state(
                self.data[pos + 1 : pos + _OBJECT_STATE_RECORD]
            )
            states[object_id] = state
        return states

    def parse_full_failure_states(self) -> dict[ObjectFailureKey, ObjectFailureEvent]:
        """Return every failure from a full failure states package."""
        if self.format != PackageFormat.FULL_FAILURE_STATES:
            raise PackageError("expected full failure package format")
        if len(self.data) % _FAILURE_RECORD:
            raise PackageError(
                "failure full state message.events data size should be 18 * nItems"
            )

        failures: dict[ObjectFailureKey, ObjectFailureEvent] = {}
        for pos in range(0, len(self.data), _FAILURE_RECORD):
            marker = self.data[pos]
            if marker != EventType.FAILURE_INFO:
                raise PackageError(
                    f"unexpected marker {marker} in failure full state message"
                )
            event = parse_failure_event(self.data[pos + 1 : pos + _FAILURE_RECORD])
            failures[event.key] = event
        return failures

    def parse_events(self) -> PackageEvents:
        """Collect the events of an events or change package.

        A change object states package yields object states only.
        """
        if self.format not in _EVENT_FORMATS:
            raise PackageError("expected events package format")
        states_only = self.format == PackageFormat.CHANGE_OBJECT_STATES

        result = PackageEvents()
        data = self.data
        pos = 0
        while pos < len(data):
            marker = data[pos]
            size = event_record_size(marker)
            if pos + size > len(data):
                raise PackageError("incorrect package size")
            body = data[pos + 1 : pos + size]

            if marker == EventType.FAILURE_INFO:
                if not states_only:
                    event = parse_failure_event(body)
                    result.failure_changes[event.key] = event
            elif marker == EventType.ACCIDENT_INFO:
                if not states_only:
                    accident = parse_accident_event(body)
                    result.accident_changes[accident.key] = accident
            elif marker == EventType.FAILURE_PROGNOSIS_ALGORITHM_INFO:
                if not states_only:
                    fp_event = parse_fp_event(body)
                    result.fp_changes[fp_event.object_id] = fp_event
            elif marker == EventType.NWA_LEAVE_INFO:
                if not states_only:
                    leave = parse_nwa_leave_event(body)
                    result.nwa_changes[leave.object_id] = leave
            elif marker == EventType.NWA_STATE_CHANGE_INFO:
                mks, count = _NWA_COUNT.unpack_from(data, pos + 1)
                size += count * _NWA_ENTRY
                if pos + size > len(data):
                    raise PackageError("incorrect size for nwa event package")
                if not states_only:
                    event_time = time_from_unix_microseconds(mks)
                    start = pos + 1 + _NWA_COUNT.size
                    for entry in range(start, pos + size, _NWA_ENTRY):
                        object_id, state_id = parse_nwa_state_change(
                            data[entry : entry + _NWA_ENTRY]
                        )
                        result.nwa_state_changes[object_id] = ObjectNwaStateChangeEvent(
                            object_id=object_id,
                            nwa_state_id=state_id,
                            event_time=event_time,
                        )
            elif marker == EventType.OBJECT_STATE:
                object_id, state = parse_object_state(body)
                result.object_states[object_id] = state

            pos += size
        return result

    def __str__(self) -> str:
        return (
            f"DevId={self.device_id},Format={int(self.format)},"
            f"Time={_rfc3339(self.package_time())}"
        )


@dataclass
class NetworkPackage:
    """A data package as received from a host over the network."""

    host_id: int = 0
    package_id: int = 0
    data: DataPackage = field(default_factory=DataPackage)

    @classmethod
    def read(cls, stream: BinaryIO) -> NetworkPackage:
        """Read one network package from a binary stream."""
        header = _read_exact(stream, _NETWORK_HEADER.size, "network header")
        host_id, package_id = _NETWORK_HEADER.unpack(header)
        return cls(host_id=host_id, package_id=package_id, data=DataPackage.read(stream))

    @classmethod
    def from_bytes(cls, data: bytes) -> NetworkPackage:
        """Read one network package from the start of ``data``."""
        return cls.read(io.BytesIO(data))

    def __str__(self) -> str:
        return (
            f"HostId= {self.host_id}, PackageId={self.package_id}, "
            f"Content=[{self.data}]"
        )