from __future__ import annotations

import argparse
import sys
from typing import Optional

from .bytecode import DATA_SIZE
from .devices import (
    BufferInput,
    BufferOutput,
    EOFPolicy,
    InputDevice,
    OutputDevice,
    StreamInput,
    StreamOutput,
)
from .event_format import format_step_event, format_tape
from .jumps import resolve_jumps
from .loader import load_program
from .runtime import execute
from .vm import BrainfuckVM
from .vm_errors import BFError, SourceNotFoundError, UnbalancedBracketsError

MISSING_SOURCE_MESSAGE = "Please specify a source code file on the command line"


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pybf", description="Run brainfuck programs on the tape VM")
    parser.add_argument("script", nargs="?", help="Path to program source")
    parser.add_argument("--input", dest="input_path", help="Read ',' input from this file instead of stdin")
    parser.add_argument(
        "--eof",
        choices=[policy.value for policy in EOFPolicy],
        default=EOFPolicy.UNCHANGED.value,
        help="What ',' stores once input is exhausted",
    )
    parser.add_argument("--tape-size", type=_positive_int, default=DATA_SIZE, help="Number of tape cells")
    parser.add_argument("--max-steps", type=_positive_int, help="Abort after this many dispatched instructions")
    parser.add_argument("--trace", action="store_true", help="Print every executed instruction to stderr")
    parser.add_argument("--dump", action="store_true", help="Print the tape around the data pointer after the run")
    parser.add_argument("-q", "--quiet", action="store_true", help="Do not report the number of bytes read")
    parser.add_argument(
        "--visualize",
        nargs="?",
        const="gui",
        choices=["gui", "curses"],
        help="Step through execution interactively (optional mode: gui or curses)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.script:
        print(MISSING_SOURCE_MESSAGE)
        return 1

    try:
        program = load_program(args.script)
        jumps = resolve_jumps(program.code)
    except (SourceNotFoundError, UnbalancedBracketsError) as exc:
        print(exc)
        return 1
    except OSError as exc:
        print(f"pybf: {exc}", file=sys.stderr)
        return 1

    if not args.quiet and not args.visualize:
        print(f"{len(program)} bytes read.")

    input_stream = None
    try:
        if args.input_path:
            input_stream = open(args.input_path, "rb")
            input_device: InputDevice = StreamInput(input_stream)
        elif args.visualize:
            # curses owns the terminal while visualizing
            input_device = BufferInput(b"")
        else:
            input_device = StreamInput(sys.stdin)
        output_device: OutputDevice = BufferOutput() if args.visualize else StreamOutput(sys.stdout)
        vm = BrainfuckVM(
            program,
            jumps=jumps,
            input_device=input_device,
            output_device=output_device,
            tape_size=args.tape_size,
            eof_policy=EOFPolicy(args.eof),
            trace=args.trace,
        )
        if args.visualize:
            return _visualize(vm, args.visualize, args.max_steps)
        try:
            execute(vm, args.max_steps)
        finally:
            if args.trace:
                _print_events(vm)
        if args.dump:
            print(file=sys.stderr)
            print(format_tape(vm.snapshot_state()), file=sys.stderr)
        return 0
    except (BFError, OSError) as exc:
        print(f"pybf: {exc}", file=sys.stderr)
        return 1
    finally:
        if input_stream is not None:
            input_stream.close()


def _print_events(vm: BrainfuckVM) -> None:
    for event in vm.drain_events():
        print(format_step_event(event), file=sys.stderr)


def _visualize(vm: BrainfuckVM, mode: str, max_steps: Optional[int]) -> int:
    vm_class = None
    gui_exc: Exception | None = None
    if mode == "gui":
        try:
            from .vm_visualizer import VMVisualizer as vm_class  # type: ignore
        except Exception as e:  # pragma: no cover - pygame missing/unavailable
            gui_exc = e
            mode = "curses"

    if mode == "curses":
        try:
            from .vm_visualizer_headless import VMVisualizer as vm_class  # type: ignore
        except Exception as headless_exc:  # pragma: no cover
            if gui_exc is not None:
                print(
                    "Visualizer unavailable. GUI error: "
                    f"{gui_exc}; Headless error: {headless_exc}",
                    file=sys.stderr,
                )
            else:
                print(f"Visualizer unavailable: {headless_exc}", file=sys.stderr)
            return 1

    assert vm_class is not None
    visualizer = vm_class(vm, max_steps=max_steps)
    visualizer.run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
