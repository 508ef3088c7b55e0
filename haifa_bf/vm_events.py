from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .bytecode import Opcode


@dataclass(frozen=True)
class StepEvent:
    """One dispatched instruction, recorded after its effect was applied."""

    step: int
    pc: int
    opcode: Opcode
    dp: int
    value: int


@dataclass
class VMStateSnapshot:
    pc: int
    dp: int
    steps: int
    halted: bool
    current_value: int
    window_start: int
    tape_window: Sequence[int]
    output: bytes = b""
    jump_target: int | None = None


__all__ = ["StepEvent", "VMStateSnapshot"]
