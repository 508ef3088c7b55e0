from __future__ import annotations

import pytest

from haifa_bf.bytecode import DATA_SIZE, Opcode, Program
from haifa_bf.devices import BufferInput, BufferOutput, EOFPolicy
from haifa_bf.vm import BrainfuckVM
from haifa_bf.vm_errors import UnbalancedBracketsError, VMRuntimeError

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


def make_vm(source, input_data=b"", **kwargs) -> BrainfuckVM:
    return BrainfuckVM.from_source(
        source,
        input_device=BufferInput(input_data),
        output_device=BufferOutput(),
        **kwargs,
    )


def test_value_increment_wraps() -> None:
    vm = make_vm("+++++")
    vm.tape[0] = 253
    vm.run()
    assert vm.tape[0] == 2


def test_value_decrement_wraps() -> None:
    vm = make_vm("-----")
    vm.tape[0] = 2
    vm.run()
    assert vm.tape[0] == 253


def test_256_increments_return_to_zero() -> None:
    vm = make_vm("+" * 256)
    vm.run()
    assert vm.tape[0] == 0


def test_pointer_increment_wraps_to_start() -> None:
    vm = make_vm(">>>>")
    vm.dp = DATA_SIZE - 2
    vm.run()
    assert vm.dp == 2


def test_pointer_decrement_wraps_to_end() -> None:
    vm = make_vm("<<<<")
    vm.dp = 2
    vm.run()
    assert vm.dp == DATA_SIZE - 2


def test_non_power_of_two_tape_uses_modulo() -> None:
    vm = make_vm("<", tape_size=10)
    vm.run()
    assert vm.dp == 9
    vm = make_vm(">" * 23, tape_size=10)
    vm.run()
    assert vm.dp == 3


def test_invalid_tape_size() -> None:
    with pytest.raises(ValueError):
        make_vm("+", tape_size=0)


def test_move_loop() -> None:
    vm = make_vm("+++++[>+<-]")
    vm.run()
    assert vm.tape[0] == 0
    assert vm.tape[1] == 5
    assert vm.halted


def test_jump_forward_falls_through_on_non_zero() -> None:
    vm = make_vm("+[-]")
    vm.step()
    vm.step()
    assert vm.pc == 2


def test_jump_forward_skips_loop_on_zero() -> None:
    vm = make_vm("[-]+")
    vm.step()
    assert vm.pc == 3
    vm.run()
    assert vm.tape[0] == 1


def test_jump_backward_reenters_after_open_bracket() -> None:
    vm = make_vm("++[-]")
    for _ in range(5):
        vm.step()
    # ']' with cell 1 goes back to the '-' right after '['
    assert vm.pc == 3


def test_unrecognized_bytes_are_skipped() -> None:
    vm = make_vm("a+ b+\n#+ comment")
    steps = vm.run()
    assert vm.tape[0] == 3
    assert steps == len(vm.program)


def test_hello_world() -> None:
    vm = make_vm(HELLO_WORLD)
    vm.run()
    assert vm.output_device.getvalue() == b"Hello World!\n"  # type: ignore[attr-defined]
    assert bytes(vm.output) == b"Hello World!\n"


def test_read_stores_input_values() -> None:
    vm = make_vm(",.>,.", input_data=b"hi")
    vm.run()
    assert vm.output_device.getvalue() == b"hi"  # type: ignore[attr-defined]
    assert list(vm.tape[:2]) == [ord("h"), ord("i")]


@pytest.mark.parametrize(
    "policy, expected",
    [(EOFPolicy.UNCHANGED, 7), (EOFPolicy.ZERO, 0), (EOFPolicy.MAX, 255)],
)
def test_read_without_input_follows_eof_policy(policy: EOFPolicy, expected: int) -> None:
    vm = make_vm(",", eof_policy=policy)
    vm.tape[0] = 7
    vm.run()
    assert vm.tape[0] == expected


def test_unbalanced_program_is_rejected_before_execution() -> None:
    with pytest.raises(UnbalancedBracketsError):
        make_vm("+[")


def test_missing_jump_entry_is_reported_as_defect() -> None:
    vm = make_vm("[]")
    vm.jumps = {}
    with pytest.raises(VMRuntimeError) as exc:
        vm.step()
    assert exc.value.pc == 0


def test_step_after_end_reports_halt() -> None:
    vm = make_vm("+")
    assert vm.step() is None
    assert vm.step() == "halt"
    assert vm.steps == 1


def test_empty_program_halts_immediately() -> None:
    vm = make_vm("")
    assert vm.halted
    assert vm.run() == 0


def test_trace_events_and_drain() -> None:
    vm = make_vm("+x>", trace=True)
    vm.run()
    events = vm.drain_events()
    assert [event.opcode for event in events] == [Opcode.INC_VALUE, Opcode.INC_PTR]
    assert events[0].pc == 0 and events[0].value == 1
    assert events[1].pc == 2 and events[1].dp == 1
    assert vm.drain_events() == []


def test_snapshot_and_reset() -> None:
    vm = make_vm("+>++[-]")
    for _ in range(4):
        vm.step()
    snapshot = vm.snapshot_state(window=2)
    assert snapshot.pc == 4
    assert snapshot.dp == 1
    assert snapshot.current_value == 2
    assert snapshot.window_start == 0
    assert list(snapshot.tape_window) == [1, 2, 0, 0]
    assert not snapshot.halted

    vm.reset()
    assert (vm.pc, vm.dp, vm.steps) == (0, 0, 0)
    assert not any(vm.tape)


def test_snapshot_reports_pending_jump_target() -> None:
    vm = make_vm("[-]")
    assert vm.snapshot_state().jump_target == 3


def test_debug_run_prints_to_stderr(capsys) -> None:
    vm = make_vm("+.")
    vm.run(debug=True)
    captured = capsys.readouterr()
    assert "[PC=0] EXEC: + INC_VALUE" in captured.err
    assert "[PC=1] EXEC: . WRITE_CHAR" in captured.err


class RecordingOutput(BufferOutput):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1


def test_run_flushes_output_when_a_handler_fails() -> None:
    output = RecordingOutput()
    vm = BrainfuckVM.from_source("+.[]", input_device=BufferInput(b""), output_device=output)
    vm.jumps = {}
    with pytest.raises(VMRuntimeError):
        vm.run()
    assert output.flushes == 1
    assert output.getvalue() == b"\x01"


def test_reset_rewinds_buffer_devices() -> None:
    vm = make_vm(",.", input_data=b"a")
    vm.run()
    assert vm.output_device.getvalue() == b"a"

    vm.reset()
    assert vm.output_device.getvalue() == b""
    vm.run()
    assert vm.output_device.getvalue() == b"a"
    assert bytes(vm.output) == b"a"


def test_prebuilt_jump_table_is_used() -> None:
    jumps = {0: 3, 2: 1}
    vm = BrainfuckVM(
        Program.from_source("[-]"),
        jumps=jumps,
        input_device=BufferInput(b""),
        output_device=BufferOutput(),
    )
    assert vm.jumps is jumps
    vm.tape[0] = 3
    vm.run()
    assert vm.tape[0] == 0
