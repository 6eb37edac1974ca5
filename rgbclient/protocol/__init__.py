# protocol/__init__.py

from .codec import decode_frame, encode_frame, read_exact, INSTRUCTION_ABSOLUTE, INSTRUCTION_RELATIVE
from .errors import ProtocolError, InvalidInstructionError

__all__ = [
    "decode_frame", "encode_frame", "read_exact",
    "INSTRUCTION_ABSOLUTE", "INSTRUCTION_RELATIVE",
    "ProtocolError", "InvalidInstructionError"]
