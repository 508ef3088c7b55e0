from __future__ import annotations

from typing import Optional

from .bytecode import CODE_SIZE, DATA_SIZE, Program, SourceLike
from .devices import BufferInput, BufferOutput, EOFPolicy, InputDevice
from .loader import PathLike, load_program
from .vm import BrainfuckVM
from .vm_errors import StepLimitExceeded


def compile_source(source: SourceLike, *, capacity: int = CODE_SIZE) -> Program:
    return Program.from_source(source, capacity)


def execute(vm: BrainfuckVM, max_steps: Optional[int] = None) -> int:
    """Run ``vm`` to completion, bounded by ``max_steps`` dispatches when given."""
    if max_steps is None:
        return vm.run()
    start = vm.steps
    try:
        while not vm.halted:
            if vm.steps - start >= max_steps:
                raise StepLimitExceeded(max_steps)
            vm.step()
    finally:
        vm.output_device.flush()
    return vm.steps - start


def _input_device(input_data: Optional[SourceLike | InputDevice]) -> InputDevice:
    if isinstance(input_data, InputDevice):
        return input_data
    return BufferInput(input_data if input_data is not None else b"")


def run_program(
    program: Program,
    input_data: Optional[SourceLike | InputDevice] = None,
    *,
    tape_size: int = DATA_SIZE,
    eof_policy: EOFPolicy = EOFPolicy.UNCHANGED,
    max_steps: Optional[int] = None,
) -> bytes:
    output = BufferOutput()
    vm = BrainfuckVM(
        program,
        input_device=_input_device(input_data),
        output_device=output,
        tape_size=tape_size,
        eof_policy=eof_policy,
    )
    execute(vm, max_steps)
    return output.getvalue()


def run_source(
    source: SourceLike,
    input_data: Optional[SourceLike | InputDevice] = None,
    *,
    tape_size: int = DATA_SIZE,
    eof_policy: EOFPolicy = EOFPolicy.UNCHANGED,
    max_steps: Optional[int] = None,
) -> bytes:
    return run_program(
        compile_source(source),
        input_data,
        tape_size=tape_size,
        eof_policy=eof_policy,
        max_steps=max_steps,
    )


def run_script(
    path: PathLike,
    input_data: Optional[SourceLike | InputDevice] = None,
    *,
    tape_size: int = DATA_SIZE,
    eof_policy: EOFPolicy = EOFPolicy.UNCHANGED,
    max_steps: Optional[int] = None,
) -> bytes:
    return run_program(
        load_program(path),
        input_data,
        tape_size=tape_size,
        eof_policy=eof_policy,
        max_steps=max_steps,
    )


__all__ = ["compile_source", "execute", "run_program", "run_source", "run_script"]
