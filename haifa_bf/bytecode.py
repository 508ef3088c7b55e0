from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple, Union

CODE_SIZE = 1 << 15  # max code size is 32,768 bytes
DATA_SIZE = 1 << 15  # tape holds 32,768 cells


class Opcode(Enum):
    INC_VALUE = ord("+")   # increase value at the data pointer
    READ_CHAR = ord(",")   # read a char into the current cell
    DEC_VALUE = ord("-")   # decrease value at the data pointer
    WRITE_CHAR = ord(".")  # write the current cell as a char
    DEC_PTR = ord("<")     # move data pointer to the left
    INC_PTR = ord(">")     # move data pointer to the right
    JUMP_FWD = ord("[")    # jump past matching ']' if cell is 0
    JUMP_BCK = ord("]")    # jump back after matching '[' if cell is not 0

    IGNORED = -1           # any other byte: comment

    @classmethod
    def decode(cls, byte: int) -> "Opcode":
        return _DECODE_TABLE.get(byte, cls.IGNORED)

    @property
    def symbol(self) -> str:
        if self is Opcode.IGNORED:
            return ""
        return chr(self.value)


_DECODE_TABLE: Dict[int, Opcode] = {op.value: op for op in Opcode if op is not Opcode.IGNORED}


SourceLike = Union[bytes, bytearray, memoryview, str]


def to_bytes(source: SourceLike) -> bytes:
    if isinstance(source, str):
        return source.encode("utf-8")
    return bytes(source)


@dataclass(frozen=True)
class Program:
    """Loaded code bytes together with their opcodes, decoded once."""

    code: bytes
    opcodes: Tuple[Opcode, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "opcodes", tuple(Opcode.decode(b) for b in self.code))

    @classmethod
    def from_source(cls, source: SourceLike, capacity: int = CODE_SIZE) -> "Program":
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        return cls(to_bytes(source)[:capacity])

    def __len__(self) -> int:
        return len(self.code)

    def __getitem__(self, index: int) -> Opcode:
        return self.opcodes[index]

    def instruction_count(self) -> int:
        return sum(1 for op in self.opcodes if op is not Opcode.IGNORED)

    def describe(self, pc: int) -> str:
        op = self.opcodes[pc]
        if op is Opcode.IGNORED:
            return f"{self.code[pc]:#04x} (ignored)"
        return f"{op.symbol} {op.name}"


__all__ = ["CODE_SIZE", "DATA_SIZE", "Opcode", "Program", "SourceLike", "to_bytes"]
