# rgbclient/model/command.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum


class Instruction(str, Enum):
    """How a command's color values are applied."""
    ABSOLUTE = "ABSOLUTE"
    RELATIVE = "RELATIVE"


@dataclass(frozen=True, slots=True)
class Command:
    """
    A color command received from the server.

    ABSOLUTE values are 0..255 per channel; RELATIVE values are signed 16-bit deltas.
    `id` is assigned once at decode time and is the cursor used for replay.
    """
    instruction: Instruction
    r: int
    g: int
    b: int
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __str__(self) -> str:
        return f"{self.instruction.value} ({self.r}, {self.g}, {self.b})"
