from __future__ import annotations

import sys
from typing import Callable, Dict, List, Mapping, Optional

from .bytecode import DATA_SIZE, Opcode, Program, SourceLike
from .devices import EOFPolicy, InputDevice, OutputDevice, StreamInput, StreamOutput
from .jumps import resolve_jumps
from .vm_errors import VMRuntimeError
from .vm_events import StepEvent, VMStateSnapshot


class BrainfuckVM:
    def __init__(
        self,
        program: Program,
        *,
        jumps: Optional[Mapping[int, int]] = None,
        input_device: Optional[InputDevice] = None,
        output_device: Optional[OutputDevice] = None,
        tape_size: int = DATA_SIZE,
        eof_policy: EOFPolicy = EOFPolicy.UNCHANGED,
        trace: bool = False,
    ):
        if tape_size < 1:
            raise ValueError("tape_size must be at least 1")
        self.program = program
        # Resolved before the first dispatch; raises UnbalancedBracketsError.
        self.jumps: Mapping[int, int] = jumps if jumps is not None else resolve_jumps(program.code)
        self.tape_size = tape_size
        self.tape = bytearray(tape_size)
        self.pc = 0
        self.dp = 0
        self.steps = 0
        self.output = bytearray()
        self.input_device = input_device if input_device is not None else StreamInput(sys.stdin)
        self.output_device = output_device if output_device is not None else StreamOutput(sys.stdout)
        self.eof_policy = eof_policy
        self.trace = trace
        self._event_buffer: List[StepEvent] = []
        # Power-of-two tapes wrap with a mask, anything else needs a true modulo.
        self._ptr_mask = tape_size - 1 if tape_size & (tape_size - 1) == 0 else None
        self._handlers: Dict[Opcode, Callable[[], None]] = {
            Opcode.INC_VALUE: self._op_INC_VALUE,
            Opcode.DEC_VALUE: self._op_DEC_VALUE,
            Opcode.INC_PTR: self._op_INC_PTR,
            Opcode.DEC_PTR: self._op_DEC_PTR,
            Opcode.JUMP_FWD: self._op_JUMP_FWD,
            Opcode.JUMP_BCK: self._op_JUMP_BCK,
            Opcode.WRITE_CHAR: self._op_WRITE_CHAR,
            Opcode.READ_CHAR: self._op_READ_CHAR,
        }

    @classmethod
    def from_source(cls, source: SourceLike, **kwargs) -> "BrainfuckVM":
        return cls(Program.from_source(source), **kwargs)

    @property
    def halted(self) -> bool:
        return self.pc >= len(self.program)

    @property
    def current_value(self) -> int:
        return self.tape[self.dp]

    def step(self):
        """Executes a single instruction."""
        if self.pc >= len(self.program):
            return "halt"

        op = self.program.opcodes[self.pc]
        self.pc += 1
        self.steps += 1
        if op is Opcode.IGNORED:
            return None

        self._handlers[op]()
        if self.trace:
            self._event_buffer.append(
                StepEvent(step=self.steps, pc=self.pc - 1, opcode=op, dp=self.dp, value=self.tape[self.dp])
            )
        return None

    def run(self, debug=False) -> int:
        """Runs until pc leaves the program and returns the number of dispatches."""
        start = self.steps
        try:
            while self.pc < len(self.program):
                if debug:
                    print(
                        f"[PC={self.pc}] EXEC: {self.program.describe(self.pc)}"
                        f" DP={self.dp} CELL={self.tape[self.dp]}",
                        file=sys.stderr,
                    )
                self.step()
        finally:
            self.output_device.flush()
        return self.steps - start

    def reset(self) -> None:
        self.tape = bytearray(self.tape_size)
        self.pc = 0
        self.dp = 0
        self.steps = 0
        self.output.clear()
        self._event_buffer.clear()
        self.input_device.reset()
        self.output_device.reset()

    def drain_events(self) -> List[StepEvent]:
        events = list(self._event_buffer)
        self._event_buffer.clear()
        return events

    def snapshot_state(self, window: int = 8) -> VMStateSnapshot:
        start = max(0, self.dp - window)
        end = min(self.tape_size, self.dp + window + 1)
        return VMStateSnapshot(
            pc=self.pc,
            dp=self.dp,
            steps=self.steps,
            halted=self.halted,
            current_value=self.tape[self.dp],
            window_start=start,
            tape_window=list(self.tape[start:end]),
            output=bytes(self.output),
            jump_target=self.jumps.get(self.pc),
        )

    def _wrap_pointer(self, dp: int) -> int:
        if self._ptr_mask is not None:
            return dp & self._ptr_mask
        return dp % self.tape_size

    def _jump_target(self) -> int:
        offset = self.pc - 1
        try:
            return self.jumps[offset]
        except KeyError:
            raise VMRuntimeError(f"no jump target recorded for offset {offset}", offset) from None

    # -------------------- Opcode handlers --------------------
    def _op_INC_VALUE(self):
        self.tape[self.dp] = (self.tape[self.dp] + 1) & 0xFF

    def _op_DEC_VALUE(self):
        self.tape[self.dp] = (self.tape[self.dp] - 1) & 0xFF

    def _op_INC_PTR(self):
        self.dp = self._wrap_pointer(self.dp + 1)

    def _op_DEC_PTR(self):
        self.dp = self._wrap_pointer(self.dp - 1)

    def _op_JUMP_FWD(self):
        if self.tape[self.dp] == 0:
            self.pc = self._jump_target()

    def _op_JUMP_BCK(self):
        if self.tape[self.dp] != 0:
            self.pc = self._jump_target()

    def _op_WRITE_CHAR(self):
        value = self.tape[self.dp]
        self.output.append(value)
        self.output_device.write_char(value)

    def _op_READ_CHAR(self):
        value = self.input_device.read_char()
        if value is not None:
            self.tape[self.dp] = value & 0xFF
        elif self.eof_policy is EOFPolicy.ZERO:
            self.tape[self.dp] = 0
        elif self.eof_policy is EOFPolicy.MAX:
            self.tape[self.dp] = 0xFF


__all__ = ["BrainfuckVM"]
