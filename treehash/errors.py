from __future__ import annotations
from pathlib import Path
from typing import Union


class TreehashError(Exception):
    """Base class for errors raised by treehash"""


class ChannelClosedError(TreehashError):
    """Raised when sending on or closing a channel that is already closed"""


class WalkError(TreehashError):
    """
    Raised when the directory traversal cannot continue.  Paths yielded before
    the failure remain valid.
    """

    def __init__(self, path: Union[str, Path], cause: OSError) -> None:
        super().__init__(path, cause)
        self.path = Path(path)
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.path} ({self.cause.strerror or self.cause})"
