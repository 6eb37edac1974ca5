from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Abstract byte-stream transport.

    Contract:
      - open()/close() manage the underlying connection.
      - read(n) returns 0..n bytes and blocks until at least one byte is available;
        b"" means the peer closed the stream.
      - abort() may be called from any thread to unblock a pending read().
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    def abort(self) -> None:
        self.close()

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
