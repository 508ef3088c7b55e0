import datetime
import json
from typing import Any, Dict, List, Optional

import pygame

from .event_format import format_step_event
from .vm import BrainfuckVM

# Constants
SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 760
BACKGROUND_COLOR = (240, 240, 240)
FONT_COLOR = (10, 10, 10)
PC_COLOR = (200, 255, 200)
DP_COLOR = (255, 255, 0)
CHANGE_COLOR = (255, 220, 200)
FONT_SIZE = 18
LINE_HEIGHT = 22
MARGIN = 20
TAPE_WINDOW = 12


class VMVisualizer:
    def __init__(self, vm: BrainfuckVM, max_steps: Optional[int] = None):
        self.vm = vm
        self.vm.trace = True
        self.max_steps = max_steps
        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
        pygame.display.set_caption("Brainfuck VM Visualizer")
        self.font = pygame.font.SysFont("monospace", FONT_SIZE)
        self.clock = pygame.time.Clock()
        self.running = True
        self.paused = True
        self.speed = 1
        self.prev_tape = bytes(self.vm.tape)
        self.message = "Press P to run, SPACE to step, +/- to change speed, L to export trace."
        self.trace_log: List[Dict[str, Any]] = []
        self.event_log: List[str] = []

    def _draw_text(self, text: str, x: int, y: int, color=FONT_COLOR, background=None):
        surface = self.font.render(text, True, color, background)
        self.screen.blit(surface, (x, y))

    def _draw_section(
        self,
        title: str,
        data: List[str],
        x: int,
        y: int,
        width: int,
        height: int,
        highlight_index: int = -1,
    ) -> None:
        pygame.draw.rect(self.screen, (220, 220, 220), (x, y, width, height), border_radius=5)
        pygame.draw.rect(self.screen, (180, 180, 180), (x, y, width, 30), border_radius=5)
        self._draw_text(title, x + 10, y + 5, color=(50, 50, 50))

        start_y = y + 40
        for i, line in enumerate(data):
            line_y = start_y + i * LINE_HEIGHT
            if line_y > y + height - LINE_HEIGHT:
                self._draw_text("...", x + 10, line_y)
                break
            bg = PC_COLOR if i == highlight_index else None
            self._draw_text(line, x + 10, line_y, background=bg)

    def _prepare_program_display(self, rows: int):
        program = self.vm.program
        if not len(program):
            return ["<empty program>"], -1
        pc_index = min(self.vm.pc, len(program) - 1)
        start = max(0, pc_index - rows // 2)
        end = min(len(program), start + rows)
        lines = []
        highlight = -1
        for idx in range(start, end):
            target = self.vm.jumps.get(idx)
            suffix = f"  -> {target}" if target is not None else ""
            lines.append(f"{idx:05d}  {program.describe(idx)}{suffix}")
            if idx == self.vm.pc:
                highlight = idx - start
        return lines, highlight

    def _draw_tape(self, x: int, y: int) -> None:
        snapshot = self.vm.snapshot_state(window=TAPE_WINDOW)
        cell_width = 46
        self._draw_text("Tape", x, y, color=(50, 50, 50))
        for i, value in enumerate(snapshot.tape_window):
            index = snapshot.window_start + i
            cx = x + i * cell_width
            if index == snapshot.dp:
                bg = DP_COLOR
            elif self.prev_tape[index] != value:
                bg = CHANGE_COLOR
            else:
                bg = (225, 225, 225)
            pygame.draw.rect(self.screen, bg, (cx, y + 28, cell_width - 4, 28), border_radius=3)
            self._draw_text(f"{value:3d}", cx + 4, y + 32)
            self._draw_text(f"{index}", cx + 4, y + 60, color=(120, 120, 120))

    def _draw_ui(self):
        self.screen.fill(BACKGROUND_COLOR)
        column_width = (SCREEN_WIDTH - 3 * MARGIN) // 2

        program_lines, highlight = self._prepare_program_display(rows=20)
        self._draw_section(
            f"Program (pc={self.vm.pc}/{len(self.vm.program)})",
            program_lines,
            MARGIN,
            MARGIN,
            column_width,
            500,
            highlight_index=highlight,
        )
        self._draw_section(
            "Steps",
            list(reversed(self.event_log[-20:])),
            2 * MARGIN + column_width,
            MARGIN,
            column_width,
            500,
        )
        self._draw_tape(MARGIN, 540)

        output = bytes(self.vm.output).decode("latin-1")
        output_lines = output.splitlines()[-2:] or ["<empty>"]
        self._draw_section("Output", output_lines, MARGIN, 630, SCREEN_WIDTH - 2 * MARGIN, 90)

        status = (
            f"steps={self.vm.steps} dp={self.vm.dp} speed={self.speed}"
            f" {'halted' if self.vm.halted else ('paused' if self.paused else 'running')}"
        )
        self._draw_text(status, MARGIN, SCREEN_HEIGHT - 30, color=(100, 100, 100))
        self._draw_text(self.message, MARGIN + 420, SCREEN_HEIGHT - 30, color=(100, 100, 100))
        pygame.display.flip()
        self.prev_tape = bytes(self.vm.tape)

    def _handle_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_q:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self.paused = True
                    self._step_once()
                elif event.key == pygame.K_p:
                    self.paused = not self.paused
                    self.message = "Running..." if not self.paused else "Paused."
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                    self.speed = min(self.speed * 2, 4096)
                elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                    self.speed = max(self.speed // 2, 1)
                elif event.key == pygame.K_l:
                    self._export_trace()
                elif event.key == pygame.K_r:
                    self._reset_vm()

    def run(self):
        while self.running:
            self._handle_events()

            if not self.paused:
                for _ in range(self.speed):
                    if self._step_once():
                        break

            self._draw_ui()
            self.clock.tick(30)

        pygame.quit()

    def _step_once(self) -> bool:
        if self.vm.halted:
            self.paused = True
            self.message = "Program already complete."
            return True
        if self.max_steps is not None and self.vm.steps >= self.max_steps:
            self.paused = True
            self.message = "Reached max steps; press R to reset."
            return True

        before_pc = self.vm.pc
        self.vm.step()
        for event in self.vm.drain_events():
            self.event_log.append(format_step_event(event))
        if len(self.event_log) > 400:
            self.event_log = self.event_log[-400:]
        self.trace_log.append(
            {
                "step": self.vm.steps,
                "pc": before_pc,
                "instruction": self.vm.program.describe(before_pc),
                "dp": self.vm.dp,
                "cell": self.vm.current_value,
            }
        )
        if self.vm.halted:
            self.paused = True
            self.message = "Execution halted."
            return True
        return False

    def _export_trace(self) -> None:
        if not self.trace_log:
            self.message = "Trace log is empty; nothing exported."
            return
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"bf_trace_{timestamp}.jsonl"
        try:
            with open(filename, "w", encoding="utf-8") as f:
                for entry in self.trace_log:
                    f.write(json.dumps(entry, ensure_ascii=False))
                    f.write("\n")
            self.message = f"Trace exported to {filename}"
        except OSError as exc:
            self.message = f"Failed to export trace: {exc}"

    def _reset_vm(self) -> None:
        self.vm.reset()
        self.paused = True
        self.prev_tape = bytes(self.vm.tape)
        self.trace_log.clear()
        self.event_log.clear()
        self.message = "VM reset."
