from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ActuatorUnavailableError(OSError):
    pass


class ActuatorSink(Protocol):
    """外部执行器接口：每次写入恰好一个字节。"""

    def write_byte(self, value: int) -> None:
        ...


class DeviceSink:
    """写入串口设备节点（如 /dev/ttyUSB0）的执行器。

    每次写入都重新打开设备、写一个字节、关闭；不跨帧持有句柄。
    """

    def __init__(self, device_path: str | Path) -> None:
        self._path = Path(device_path)

    @property
    def path(self) -> Path:
        return self._path

    def write_byte(self, value: int) -> None:
        if not 0 <= int(value) <= 255:
            raise ValueError(f"byte value out of range: {value}")
        try:
            with open(self._path, "wb", buffering=0) as f:
                f.write(bytes([int(value)]))
        except OSError as e:
            raise ActuatorUnavailableError(f"cannot write to {self._path}: {e}") from e


class NullSink:
    def write_byte(self, value: int) -> None:
        logger.debug("null sink dropped code %d", value)


def open_sink(path: Optional[str | Path]) -> ActuatorSink:
    """有设备路径时返回 DeviceSink，否则返回 NullSink（只记录被丢弃的编码）。"""
    if path:
        return DeviceSink(path)
    return NullSink()


def dispatch_code(sink: Optional[ActuatorSink], code: Optional[int]) -> bool:
    """把编码发送到执行器。

    输入: sink 可为 None；code 为 None 时不写入。
    输出: True 表示已写入，False 表示未写入（无编码、无设备或设备不可用）。
    作用: 设备错误只记录日志，不影响本帧的文本反馈。
    """
    if code is None or sink is None:
        return False
    try:
        sink.write_byte(code)
    except OSError as e:
        logger.warning("actuator write failed for code %d: %s", code, e)
        return False
    return True
