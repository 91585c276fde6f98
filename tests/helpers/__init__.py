"""Test helper utilities for Air Quality Monitor tests."""

from .transports import RecordingTransport, SendRecord, SleepRecorder

__all__ = ["RecordingTransport", "SendRecord", "SleepRecorder"]
