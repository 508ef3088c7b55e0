from .bytecode import CODE_SIZE, DATA_SIZE, Opcode, Program
from .devices import (
    BufferInput,
    BufferOutput,
    EOFPolicy,
    InputDevice,
    OutputDevice,
    StreamInput,
    StreamOutput,
)
from .jumps import resolve_jumps
from .loader import load_program, load_source
from .runtime import compile_source, execute, run_program, run_script, run_source
from .vm import BrainfuckVM
from .vm_errors import (
    BFError,
    SourceNotFoundError,
    StepLimitExceeded,
    UnbalancedBracketsError,
    VMRuntimeError,
)

__all__ = [
    "CODE_SIZE",
    "DATA_SIZE",
    "Opcode",
    "Program",
    "BrainfuckVM",
    "resolve_jumps",
    "load_source",
    "load_program",
    "compile_source",
    "execute",
    "run_program",
    "run_source",
    "run_script",
    "EOFPolicy",
    "InputDevice",
    "OutputDevice",
    "BufferInput",
    "BufferOutput",
    "StreamInput",
    "StreamOutput",
    "BFError",
    "SourceNotFoundError",
    "UnbalancedBracketsError",
    "VMRuntimeError",
    "StepLimitExceeded",
]
