# rgbclient/protocol/errors.py

class ProtocolError(Exception):
    """Base for protocol-level failures (malformed frames). Fatal to the stream."""


class InvalidInstructionError(ProtocolError):
    def __init__(self, code: int):
        super().__init__(f"invalid instruction code: {code}")
        self.code = code
