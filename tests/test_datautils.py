import math
import struct

import pytest

from apkdk.datautils import (
    MAX_DEVICE_ID,
    float_from_uint16,
    float_from_uint32,
    get_data_converter,
    get_nan,
    host_for_special_device,
    is_nan,
    special_device_for_host,
)


def _single(value):
    return struct.unpack("<f", struct.pack("<f", value))[0]


def test_special_device_for_host():
    assert special_device_for_host(500) == 500 + MAX_DEVICE_ID


def test_host_for_special_device_valid():
    assert host_for_special_device(1000 + MAX_DEVICE_ID) == 1000


def test_host_for_special_device_invalid():
    with pytest.raises(ValueError, match="not special device id"):
        host_for_special_device(1000)


def test_special_device_round_trip():
    for host in (0, 1, 12345):
        assert host_for_special_device(special_device_for_host(host)) == host


def test_not_supported_bits():
    with pytest.raises(ValueError):
        get_data_converter(8)


NAN = float("nan")


@pytest.mark.parametrize(
    ("data", "sensor_id", "expected"),
    [
        (bytes([0, 0, 0, 0]), 0, 0.0),
        (bytes([0, 0, 0, 0, 0, 0, 0, 0]), 1, 0.0),
        (bytes([1, 0, 0, 0]), 0, 0.001),
        (bytes([0, 0, 0, 0, 1, 0, 0, 0]), 1, 0.001),
        (bytes([255, 0, 0, 0]), 0, 0.255),
        (bytes([0, 0, 0, 0, 255, 0, 0, 0]), 1, 0.255),
        (bytes([0x00, 0x00, 0x00, 0x80]), 0, NAN),
        (b"", 0, NAN),
    ],
)
def test_conversion_from_32bit(data, sensor_id, expected):
    value = get_data_converter(32)(data, sensor_id)
    if is_nan(value):
        assert is_nan(expected)
    else:
        assert value == _single(expected)


@pytest.mark.parametrize(
    ("data", "sensor_id", "expected"),
    [
        (bytes([0, 0]), 0, 0.0),
        (bytes([0, 0, 0, 0]), 1, 0.0),
        (bytes([1, 0]), 0, 0.001),
        (bytes([0, 0, 1, 0]), 1, 0.001),
        (bytes([255, 0]), 0, 0.255),
        (bytes([0, 0, 255, 0]), 1, 0.255),
        (bytes([0x00, 0x80]), 0, NAN),
        (b"", 0, NAN),
    ],
)
def test_conversion_from_16bit(data, sensor_id, expected):
    value = get_data_converter(16)(data, sensor_id)
    if is_nan(value):
        assert is_nan(expected)
    else:
        assert value == _single(expected)


def test_get_nan_is_nan():
    assert math.isnan(get_nan())
    assert is_nan(get_nan())


def test_undefined_values_decode_to_nan():
    assert is_nan(float_from_uint32(0x80000000))
    assert is_nan(float_from_uint16(0x8000))


def test_negative_values_mirror_positive():
    assert float_from_uint32(0xFFFFFFFF) == -float_from_uint32(1)
    assert float_from_uint16(0xFFFF) == -float_from_uint16(1)
    assert float_from_uint32((~1000 + 1) & 0xFFFFFFFF) == -float_from_uint32(1000)


def test_whole_thousands_decode_to_integers():
    assert float_from_uint32(5000) == 5.0
    assert float_from_uint16(2000) == 2.0


def test_16_and_32_bit_agree_on_small_values():
    for raw in (0, 1, 42, 999, 1234, 32767):
        assert float_from_uint16(raw) == float_from_uint32(raw)