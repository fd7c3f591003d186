from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class StructureError(ValueError):
    """Raised when loop delimiters in the source are unbalanced."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.position = position


class CellAddressing(str, Enum):
    LOCAL = "local"
    GLOBAL = "global"


@dataclass
class Generator:
    """Single-pass translator from Brainfuck source to a WAT function body.

    Runs of ``>``/``<`` and ``+``/``-`` are held in two accumulators and
    emitted as one instruction when an operation of another kind arrives.
    Every ``[`` opens a ``block``/``loop`` pair with two fresh labels.
    """

    addressing: CellAddressing = CellAddressing.LOCAL
    base_indent: int = 2
    indent_step: int = 2

    output: List[str] = field(init=False, repr=False)
    pending_move: int = field(init=False, repr=False)
    pending_delta: int = field(init=False, repr=False)
    next_label: int = field(init=False, repr=False)
    depth: int = field(init=False, repr=False)
    indent: int = field(init=False, repr=False)
    _loop_labels: List[int] = field(init=False, repr=False)
    _open_positions: List[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.addressing = CellAddressing(self.addressing)
        self.reset()

    def reset(self) -> None:
        self.output = []
        self.pending_move = 0
        self.pending_delta = 0
        self.next_label = 0
        self.depth = 0
        self.indent = self.base_indent
        self._loop_labels = []
        self._open_positions = []

    def translate(self, source: str) -> str:
        self.reset()
        for position, char in enumerate(source):
            if char == ">":
                self._flush_delta()
                self.pending_move += 1
            elif char == "<":
                self._flush_delta()
                self.pending_move -= 1
            elif char == "+":
                self._flush_move()
                self.pending_delta += 1
            elif char == "-":
                self._flush_move()
                self.pending_delta -= 1
            elif char == ".":
                self._flush_pending()
                self._emit_output()
            elif char == ",":
                self._flush_pending()
                self._emit_input()
            elif char == "[":
                self._flush_pending()
                self._open_loop(position)
            elif char == "]":
                self._flush_pending()
                self._close_loop(position)

        if self._open_positions:
            raise StructureError("Unmatched '['", self._open_positions[-1])

        self._flush_pending()
        return "".join(self.output)

    @property
    def label_count(self) -> int:
        return self.next_label

    # --- Helpers ---

    def _ptr(self) -> str:
        return f"({self.addressing.value}.get $ptr)"

    def _set_ptr(self) -> str:
        return f"({self.addressing.value}.set $ptr)"

    def _cell(self) -> str:
        return f"(i32.load8_u {self._ptr()})"

    def _line(self, text: str, extra: int = 0) -> None:
        self.output.append(" " * (self.indent + extra) + text + "\n")

    def _flush_pending(self) -> None:
        self._flush_move()
        self._flush_delta()

    def _flush_move(self) -> None:
        if self.pending_move == 0:
            return
        amount = self.pending_move
        self.pending_move = 0
        op = "i32.add" if amount > 0 else "i32.sub"
        self._line(f"({op} {self._ptr()} (i32.const {abs(amount)}))")
        self._line(self._set_ptr())

    def _flush_delta(self) -> None:
        if self.pending_delta == 0:
            return
        amount = self.pending_delta
        self.pending_delta = 0
        # i32.store8 truncates to the low byte
        op = "i32.add" if amount > 0 else "i32.sub"
        self._line(self._ptr())
        self._line(f"(i32.store8 ({op} {self._cell()} (i32.const {abs(amount)})))")

    def _emit_output(self) -> None:
        self._line(self._cell())
        self._line("(call $putChar)")

    def _emit_input(self) -> None:
        self._line(f"(i32.store8 {self._ptr()} (call $getChar))")

    def _open_loop(self, position: int) -> None:
        exit_label = self.next_label
        body_label = exit_label + 1
        self._line(f"(block $label${exit_label}")
        self._line(f"(br_if $label${exit_label} (i32.eq {self._cell()} (i32.const 0)))", extra=1)
        self._line(f"(loop $label${body_label}", extra=1)
        self._loop_labels.append(body_label)
        self._open_positions.append(position)
        self.next_label += 2
        self.depth += 1
        self.indent += self.indent_step

    def _close_loop(self, position: int) -> None:
        if not self._loop_labels:
            raise StructureError("Unmatched ']'", position)
        self.depth -= 1
        body_label = self._loop_labels.pop()
        self._open_positions.pop()
        self._line(f"(br_if $label${body_label} (i32.ne {self._cell()} (i32.const 0)))")
        self.indent -= self.indent_step
        self._line(")", extra=1)
        self._line(")")


def translate(source: str, addressing: CellAddressing = CellAddressing.LOCAL) -> str:
    return Generator(addressing=addressing).translate(source)


__all__ = [
    "CellAddressing",
    "Generator",
    "StructureError",
    "translate",
]
