"""Binary data and event packages of a diagnostic monitoring system, measurement decoding and logging."""

__version__ = "0.1.0"