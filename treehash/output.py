from __future__ import annotations
from pathlib import Path
import sys
from threading import Lock
from typing import Optional, TextIO
from txtble import ASCII_EQ_BORDERS, Txtble
from .bases import Result, ScanSummary
from .errors import WalkError


def format_error(e: BaseException) -> str:
    if isinstance(e, OSError) and e.strerror:
        return e.strerror
    return str(e)


def format_result(result: Result) -> str:
    if result.error is not None:
        return f"ERR: {result.path} ({format_error(result.error)})"
    return f"{result.digest}  {result.path}"


class ConsoleReporter:
    """
    Writes scan progress and results as lines of text.  Whole lines are
    written under a lock, as discovery lines and result lines may come from
    different threads.
    """

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        progress: bool = True,
    ) -> None:
        self._out = out
        self._err = err
        self.progress = progress
        self._lock = Lock()

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def _write(self, line: str, fp: TextIO) -> None:
        with self._lock:
            print(line, file=fp, flush=True)

    def discovered(self, path: Path) -> None:
        if self.progress:
            self._write(f"Hashing: {path}", self.out)

    def __call__(self, result: Result) -> None:
        self._write(format_result(result), self.out)

    def walk_failed(self, e: WalkError) -> None:
        self._write(f"ERR: walk failed: {e}", self.err)

    def show_summary(self, summary: ScanSummary) -> None:
        if summary.walk_error is not None:
            walk = f"failed: {summary.walk_error}"
        elif summary.cancelled:
            walk = "cancelled"
        else:
            walk = "complete"
        tbl = Txtble(
            headers=["Root", "Files", "Digested", "Failed", "Walk", "Seconds"],
            data=[
                [
                    str(summary.root),
                    summary.discovered,
                    summary.digested,
                    summary.failed,
                    walk,
                    f"{summary.elapsed:.3f}",
                ]
            ],
            header_border=ASCII_EQ_BORDERS,
            padding=1,
        )
        self._write(tbl.show(), self.err)
