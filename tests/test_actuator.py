import logging

import pytest

from guard_core.actuator import ActuatorUnavailableError, DeviceSink, NullSink, dispatch_code, open_sink


def test_device_sink_writes_one_byte_per_call(tmp_path):
    dev = tmp_path / "tty"
    sink = DeviceSink(dev)
    assert dispatch_code(sink, 3)
    assert dev.read_bytes() == b"\x03"
    assert dispatch_code(sink, 1)
    assert dev.read_bytes() == b"\x01"


def test_no_code_means_no_write(tmp_path):
    dev = tmp_path / "tty"
    assert not dispatch_code(DeviceSink(dev), None)
    assert not dev.exists()
    assert not dispatch_code(None, 2)


def test_unavailable_device_is_logged_not_raised(tmp_path, caplog):
    sink = DeviceSink(tmp_path / "missing" / "tty")
    with pytest.raises(ActuatorUnavailableError):
        sink.write_byte(2)
    with caplog.at_level(logging.WARNING, logger="guard_core.actuator"):
        assert not dispatch_code(sink, 2)
    assert "actuator write failed" in caplog.text


def test_byte_range_is_checked(tmp_path):
    with pytest.raises(ValueError):
        DeviceSink(tmp_path / "tty").write_byte(256)


def test_null_sink_accepts_codes():
    assert dispatch_code(NullSink(), 4)


def test_open_sink_without_device_logs_dropped_codes(caplog):
    sink = open_sink(None)
    assert isinstance(sink, NullSink)
    with caplog.at_level(logging.DEBUG, logger="guard_core.actuator"):
        assert dispatch_code(sink, 2)
    assert "dropped code 2" in caplog.text


def test_open_sink_with_device_path(tmp_path):
    sink = open_sink(tmp_path / "tty")
    assert isinstance(sink, DeviceSink)
