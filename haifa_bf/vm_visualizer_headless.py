from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import List, Optional

from .event_format import format_step_event
from .vm import BrainfuckVM


@dataclass
class _VMState:
    vm: BrainfuckVM
    halted: bool = False


class VMVisualizer:
    """Curses-based headless visualizer for BrainfuckVM.

    Controls:
      - SPACE / p : toggle auto-run
      - n / →     : single-step
      - r         : reset VM state
      - e         : toggle step log visibility
      - q         : quit

    Designed for environments without pygame but with a terminal.
    """

    def __init__(self, vm: BrainfuckVM, max_steps: Optional[int] = None):
        vm.trace = True
        self.state = _VMState(vm=vm, halted=vm.halted)
        self.max_steps = max_steps
        self.auto_run = False
        self.message = "Press SPACE to run/pause, n to step, q to quit."
        self.event_log: List[str] = []
        self.show_events = True

    # ---------------------------- public API ----------------------------- #
    def run(self) -> None:  # pragma: no cover - interactive utility
        curses.wrapper(self._main)

    # --------------------------- internal helpers ------------------------ #
    def _main(self, stdscr: "curses._CursesWindow") -> None:  # pragma: no cover - interactive utility
        curses.curs_set(0)
        stdscr.nodelay(False)
        while True:
            self._draw(stdscr)
            stdscr.timeout(30 if (self.auto_run and not self.state.halted) else -1)
            key = stdscr.getch()
            if key == -1:
                if self.auto_run and not self.state.halted:
                    self._advance(auto=True)
                continue

            if key in (ord("q"), ord("Q")):
                break
            if key in (ord(" "), ord("p"), ord("P")):
                if self.state.halted:
                    self.message = "Program halted. Press r to reset or q to quit."
                else:
                    self.auto_run = not self.auto_run
                    self.message = "Running..." if self.auto_run else "Paused."
                continue
            if key in (ord("n"), curses.KEY_RIGHT):
                self._advance(auto=False)
                continue
            if key in (ord("r"), ord("R")):
                self._reset()
                continue
            if key in (ord("e"), ord("E")):
                self.show_events = not self.show_events
                self.message = "Step log visible." if self.show_events else "Step log hidden."
                continue
            self.message = f"Unhandled key: {key}."

    def _advance(self, auto: bool) -> None:
        if self.state.halted:
            self.auto_run = False
            return
        if self.max_steps is not None and self.state.vm.steps >= self.max_steps:
            self.auto_run = False
            self.message = "Reached max steps; press r to reset or q to quit."
            return

        control = self.state.vm.step()
        self._consume_events()

        if control == "halt" or self.state.vm.halted:
            self.state.halted = True
            self.auto_run = False
            self.message = "Halted. Press r to reset or q to quit."
        elif auto:
            self.message = "Running..."

    def _consume_events(self) -> None:
        for event in self.state.vm.drain_events():
            self.event_log.append(format_step_event(event))
        if len(self.event_log) > 200:
            self.event_log = self.event_log[-200:]

    def _reset(self) -> None:
        self.state.vm.reset()
        self.state.halted = self.state.vm.halted
        self.auto_run = False
        self.message = "Reset. Press SPACE to run or n to step."
        self.event_log.clear()

    def _draw(self, stdscr: "curses._CursesWindow") -> None:  # pragma: no cover - interactive utility
        stdscr.erase()
        height, width = stdscr.getmaxyx()
        vm = self.state.vm
        program = vm.program
        self._write(stdscr, 0, 0, "Program (SPACE: run/pause, n: step, r: reset, q: quit)")

        view_height = min(10, max(1, height - 12))
        pc_index = min(vm.pc, len(program) - 1) if len(program) else 0
        start = max(0, pc_index - view_height // 2)
        end = min(len(program), start + view_height)
        row = 2
        if len(program):
            for idx in range(start, end):
                is_cursor = idx == vm.pc
                prefix = "→" if is_cursor else " "
                target = vm.jumps.get(idx)
                suffix = f" -> {target}" if target is not None else ""
                line = f"{prefix}{idx:05d} {program.describe(idx)}{suffix}"
                attr = curses.A_REVERSE if is_cursor else curses.A_NORMAL
                self._write(stdscr, row, 0, line, attr)
                row += 1
        else:
            self._write(stdscr, row, 0, "<empty program>")
            row += 1

        snapshot = vm.snapshot_state(window=8)
        row += 1
        self._write(
            stdscr,
            row,
            0,
            f"Step: {snapshot.steps} | PC: {snapshot.pc} | DP: {snapshot.dp} "
            f"| Auto: {self.auto_run} | Halted: {self.state.halted}",
        )

        row += 2
        self._write(stdscr, row, 0, "Tape:")
        col = 2
        for i, value in enumerate(snapshot.tape_window):
            index = snapshot.window_start + i
            attr = curses.A_REVERSE if index == snapshot.dp else curses.A_NORMAL
            self._write(stdscr, row + 1, col, f"{value:03}", attr)
            self._write(stdscr, row + 2, col, f"{index % 1000:03}")
            col += 4

        row += 4
        self._write(stdscr, row, 0, "Output:")
        text = snapshot.output.decode("latin-1").replace("\n", "⏎")
        self._write(stdscr, row + 1, 2, text[-(width - 4):] or "<empty>")

        row += 3
        if self.show_events:
            self._write(stdscr, row, 0, "Steps:")
            for i, line in enumerate(reversed(self.event_log[-5:])):
                self._write(stdscr, row + 1 + i, 2, line)
        else:
            self._write(stdscr, row, 0, "Steps: <hidden>")

        self._write(stdscr, height - 2, 0, self.message[: width - 1])
        stdscr.refresh()

    def _write(
        self, stdscr: "curses._CursesWindow", y: int, x: int, text: str, attr: int = curses.A_NORMAL
    ) -> None:  # pragma: no cover - interactive utility
        height, width = stdscr.getmaxyx()
        if 0 <= y < height and x < width:
            try:
                stdscr.addnstr(y, x, text, max(0, width - x - 1), attr)
            except curses.error:
                pass
