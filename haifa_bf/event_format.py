from __future__ import annotations

from .vm_events import StepEvent, VMStateSnapshot


def format_step_event(event: object) -> str:
    if isinstance(event, StepEvent):
        return (
            f"#{event.step} pc={event.pc} {event.opcode.symbol} {event.opcode.name}"
            f" dp={event.dp} cell={event.value}"
        )
    return str(event)


def format_tape(snapshot: VMStateSnapshot) -> str:
    cells = []
    for i, value in enumerate(snapshot.tape_window):
        index = snapshot.window_start + i
        if index == snapshot.dp:
            cells.append(f"[{value:03}]")
        else:
            cells.append(f" {value:03} ")
    return f"tape@{snapshot.window_start}: " + "".join(cells)


__all__ = ["format_step_event", "format_tape"]
