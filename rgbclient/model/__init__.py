# model/__init__.py
from .command import Command, Instruction
from .color_state import ColorState, RGB

__all__ = ["Command", "Instruction", "ColorState", "RGB"]
