"""Measurement value decoding and special device identifiers."""

from __future__ import annotations

import math
import struct
from typing import Callable

from apkdk.formats import (
    SYSTEM_UNDEFINED_16BIT_VALUE,
    SYSTEM_UNDEFINED_32BIT_VALUE,
    UNDEFINED_MEASURE_VALUE,
)

MAX_DEVICE_ID = 0x20000000

_NAN = struct.unpack("<f", struct.pack("<I", UNDEFINED_MEASURE_VALUE))[0]
_F32_THOUSANDTH = struct.unpack("<f", struct.pack("<f", 0.001))[0]

DataConverter = Callable[[bytes, int], float]


def _f32(value: float) -> float:
    """Round a float to single precision."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _round_half_away(value: float) -> float:
    result = math.floor(abs(value) + 0.5)
    return float(math.copysign(result, value))


def _round3(value: float) -> float:
    scaled = _f32(value * 1000.0)
    return _f32(_round_half_away(scaled) / 1000.0)


def _decode(x: int, sign_bit: int, mask: int) -> float:
    negative = bool(x & sign_bit)
    if negative:
        x = (~x + 1) & mask
    value = _f32(_f32(x // 1000) + _f32(_f32(x % 1000) * _F32_THOUSANDTH))
    if negative:
        value = -value
    return _round3(value)


def get_nan() -> float:
    """Return the value used for an undefined measurement."""
    return _NAN


def is_nan(x: float) -> bool:
    """Tell whether a measurement is undefined."""
    return math.isnan(x)


def float_from_uint32(x: int) -> float:
    """Decode a 32-bit two's complement value in thousandths."""
    if x == SYSTEM_UNDEFINED_32BIT_VALUE:
        return _NAN
    return _decode(x, 0x80000000, 0xFFFFFFFF)


def float_from_uint16(x: int) -> float:
    """Decode a 16-bit two's complement value in thousandths."""
    if x == SYSTEM_UNDEFINED_16BIT_VALUE:
        return _NAN
    return _decode(x, 0x8000, 0xFFFF)


def get_data_converter(bits_per_sensor: int) -> DataConverter:
    """Return a function reading sensor ``sensor_id``'s value from packed data."""
    if bits_per_sensor == 16:
        width, fmt, decode = 2, "<H", float_from_uint16
    elif bits_per_sensor == 32:
        width, fmt, decode = 4, "<I", float_from_uint32
    else:
        raise ValueError("not supported bits per sensor in measures")

    def convert(data: bytes, sensor_id: int) -> float:
        if sensor_id >= len(data) // width:
            return _NAN
        (raw,) = struct.unpack_from(fmt, data, sensor_id * width)
        return decode(raw)

    return convert


def special_device_for_host(host_id: int) -> int:
    """Return the special device identifier that stands for a host."""
    value = ((host_id + 0x80000000) & 0xFFFFFFFF) - 0x80000000
    return ((value + MAX_DEVICE_ID + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def host_for_special_device(device_id: int) -> int:
    """Return the host a special device identifier stands for."""
    if device_id < MAX_DEVICE_ID:
        raise ValueError("not special device id")
    return device_id - MAX_DEVICE_ID