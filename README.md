# apkdk

A library for the binary packages exchanged by the devices and hosts of a
diagnostic monitoring system. It reads and writes data packages, parses the
events they carry, decodes measurement values and sets up logging.

## Installation

```
pip install .
```

The package has no dependencies outside the standard library.

## Data packages

A package is a little-endian record: a microsecond Unix timestamp (`time`),
`device_id`, `sensor_count`, `bits_per_sensor`, `format`, `data_size` and
`data_size` bytes of `data`.

```python
from apkdk.package import DataPackage, NetworkPackage

package = DataPackage.from_bytes(raw_bytes)   # or DataPackage.read(stream)
print(package)                    # DevId=...,Format=...,Time=<RFC 3339, UTC>
print(package.package_time())     # timezone-aware UTC datetime
print(package.is_compressed())    # data size differs from the plain packing

wire = package.to_bytes()         # or package.write(stream)
text = package.base64()           # standard Base64 of the wire form
package.verify()                  # every header field fits its wire width

# A package as received from the network: host id and package id first
net = NetworkPackage.from_bytes(network_bytes)  # or NetworkPackage.read(stream)
print(net.host_id, net.package_id, net.data)
```

Truncated or malformed input raises `apkdk.formats.PackageError`
(a `ValueError`).

`apkdk.formats` holds the `PackageFormat` and `EventType` enumerations and
`event_record_size(marker)`, the size of an event record including its marker.

## Events

```python
from apkdk.formats import PackageFormat

events = package.parse_events()
events.object_states      # object id -> state code
events.failure_changes    # ObjectFailureKey -> ObjectFailureEvent
events.accident_changes   # ObjectAccidentKey -> ObjectAccidentEvent
events.fp_changes         # object id -> ObjectFpEvent
events.nwa_changes        # object id -> ObjectNwaLeaveEvent
events.nwa_state_changes  # object id -> ObjectNwaStateChangeEvent
events.objects()          # set of every object id mentioned

states = package.parse_full_object_states()      # object id -> state code
failures = package.parse_full_failure_states()   # ObjectFailureKey -> event
```

`parse_events` accepts `EVENTS`, `CHANGE_OBJECT_STATES` and
`CHANGE_FAILURE_STATES` packages; a `CHANGE_OBJECT_STATES` package yields
object states only. The record decoders (`parse_object_state`,
`parse_failure_event`, `parse_fp_event`, `parse_nwa_leave_event`,
`parse_nwa_state_change`, `parse_accident_event`) are in `apkdk.events`.

## Measurement values

```python
from apkdk.datautils import get_data_converter, is_nan

convert = get_data_converter(32)   # 16 or 32; anything else raises ValueError
value = convert(package.data, 0)   # sensor 0, two's complement thousandths
if is_nan(value):
    print("undefined or out of range")
```

`float_from_uint16` and `float_from_uint32` decode single raw values;
`get_nan()` returns the value used for undefined measurements.
`special_device_for_host(host_id)` and `host_for_special_device(device_id)`
map hosts to special device ids and back; the latter raises `ValueError` for
ids below `MAX_DEVICE_ID`.

`apkdk.timeutils` converts between datetimes and Unix microseconds,
milliseconds and seconds.

## Logging

```python
from apkdk.logsetup import init_default_logging, init_roll_file_logging

log = init_default_logging(use_trace=True)   # stdout, errors to stderr
log.info("started")
log.trace("details")                          # only when trace is enabled

file_log = init_roll_file_logging("monitor.log", use_trace=False)
file_log.warning("disk almost full")
file_log.clear()                              # closes the file
```

Lines look like `INFO:    2024/01/31 12:00:00.123: started`; errors also
carry the caller's file and line. The rolling file is rotated at 5 MiB into
gzip-compressed backups, keeping at most 500 and removing those older than
14 days. `fatal_error` logs and then raises `SystemExit(1)`. `DummyLogger`
accepts every message and discards it; `Logger` is the protocol both satisfy.

## What it does not do

The package has no command-line program and no network client or server: it
works on bytes and streams that the caller supplies.

## Tests

```
pip install .[test]
pytest
```