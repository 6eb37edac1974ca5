# rgbclient/protocol/codec.py
from __future__ import annotations

import struct
from typing import Protocol as TypingProtocol

from rgbclient.model.command import Command, Instruction
from rgbclient.transport.errors import TransportIOError

from .errors import InvalidInstructionError

INSTRUCTION_RELATIVE = 1
INSTRUCTION_ABSOLUTE = 2

_RELATIVE_STRUCT = struct.Struct(">hhh")  # signed 16-bit deltas
_ABSOLUTE_STRUCT = struct.Struct(">BBB")  # unsigned 8-bit channels


class FrameReader(TypingProtocol):
    """Anything with a read(n) -> 0..n bytes; b"" means end-of-stream."""
    def read(self, n: int) -> bytes: ...


def read_exact(reader: FrameReader, n: int) -> bytes:
    buf = b""
    while len(buf) < n:
        chunk = reader.read(n - len(buf))
        if not chunk:
            raise TransportIOError("connection closed by server")
        buf += chunk
    return buf


def decode_frame(reader: FrameReader) -> Command:
    """
    Decode one command frame.

    Raises InvalidInstructionError after consuming exactly the instruction byte, and
    TransportIOError when the stream fails or ends mid-frame.
    """
    code = read_exact(reader, 1)[0]

    if code == INSTRUCTION_RELATIVE:
        r, g, b = _RELATIVE_STRUCT.unpack(read_exact(reader, _RELATIVE_STRUCT.size))
        return Command(Instruction.RELATIVE, r, g, b)

    if code == INSTRUCTION_ABSOLUTE:
        r, g, b = _ABSOLUTE_STRUCT.unpack(read_exact(reader, _ABSOLUTE_STRUCT.size))
        return Command(Instruction.ABSOLUTE, r, g, b)

    raise InvalidInstructionError(code)


def encode_frame(command: Command) -> bytes:
    """Inverse of decode_frame; used by test servers and tooling."""
    if command.instruction is Instruction.RELATIVE:
        return bytes([INSTRUCTION_RELATIVE]) + _RELATIVE_STRUCT.pack(command.r, command.g, command.b)
    return bytes([INSTRUCTION_ABSOLUTE]) + _ABSOLUTE_STRUCT.pack(command.r, command.g, command.b)
