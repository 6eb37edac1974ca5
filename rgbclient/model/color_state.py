# rgbclient/model/color_state.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from .command import Command, Instruction


@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int

    def clamped(self) -> "RGB":
        return RGB(_clamp(self.r), _clamp(self.g), _clamp(self.b))

    def hex(self) -> str:
        c = self.clamped()
        return f"#{c.r:02X}{c.g:02X}{c.b:02X}"


def _clamp(v: int) -> int:
    return max(0, min(255, int(v)))


class ColorState:
    """
    Accumulates commands into a displayed color.

    An ABSOLUTE command sets the base color and discards pending deltas.
    RELATIVE commands add their deltas on top of the most recent base.
    """

    def __init__(self, history_size: int = 1000):
        if history_size <= 0:
            raise ValueError("history_size must be > 0")
        self._base: Optional[Command] = None
        self._deltas: List[Command] = []
        self._history: Deque[Command] = deque(maxlen=int(history_size))

    def add(self, command: Command) -> None:
        if command.instruction is Instruction.ABSOLUTE:
            self._base = command
            self._deltas.clear()
        elif command.instruction is Instruction.RELATIVE:
            self._deltas.append(command)
        else:
            raise ValueError(f"unknown instruction: {command.instruction!r}")
        self._history.append(command)

    def effective_color(self) -> Optional[RGB]:
        """Base color plus all deltas since it, or None before the first ABSOLUTE command."""
        if self._base is None:
            return None

        r, g, b = self._base.r, self._base.g, self._base.b
        for d in self._deltas:
            r += d.r
            g += d.g
            b += d.b
        return RGB(r, g, b)

    def last_command(self) -> Optional[Command]:
        return self._history[-1] if self._history else None

    @property
    def history(self) -> List[Command]:
        return list(self._history)
