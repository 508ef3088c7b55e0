from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import IO, Any, Optional

from .bytecode import SourceLike, to_bytes


class EOFPolicy(Enum):
    """What ',' stores when the input device has no character left."""

    UNCHANGED = "unchanged"
    ZERO = "zero"
    MAX = "max"


class InputDevice(ABC):
    @abstractmethod
    def read_char(self) -> Optional[int]:
        """Return the next character's value, or None when none is available."""

    def reset(self) -> None:
        """Rewind to the first character where the device can; streams cannot."""
        return None


class OutputDevice(ABC):
    @abstractmethod
    def write_char(self, value: int) -> None:
        pass

    def flush(self) -> None:
        return None

    def reset(self) -> None:
        return None


class BufferInput(InputDevice):
    def __init__(self, data: SourceLike = b""):
        self._data = to_bytes(data)
        self._pos = 0

    def read_char(self) -> Optional[int]:
        if self._pos >= len(self._data):
            return None
        value = self._data[self._pos]
        self._pos += 1
        return value

    def reset(self) -> None:
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos


class StreamInput(InputDevice):
    """Reads from a text or binary stream such as ``sys.stdin``."""

    def __init__(self, stream: IO[Any]):
        self.stream = stream

    def read_char(self) -> Optional[int]:
        chunk = self.stream.read(1)
        if not chunk:
            return None
        if isinstance(chunk, str):
            return ord(chunk) & 0xFF
        return chunk[0]


class BufferOutput(OutputDevice):
    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_char(self, value: int) -> None:
        self._buffer.append(value & 0xFF)

    def reset(self) -> None:
        self._buffer.clear()

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    @property
    def text(self) -> str:
        return self._buffer.decode("latin-1")

    def __len__(self) -> int:
        return len(self._buffer)


class StreamOutput(OutputDevice):
    """Writes each cell value as ``chr(value)`` to a text stream."""

    def __init__(self, stream: IO[str]):
        self.stream = stream

    def write_char(self, value: int) -> None:
        self.stream.write(chr(value & 0xFF))

    def flush(self) -> None:
        self.stream.flush()


__all__ = [
    "EOFPolicy",
    "InputDevice",
    "OutputDevice",
    "BufferInput",
    "StreamInput",
    "BufferOutput",
    "StreamOutput",
]
