from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from threading import Lock
from time import perf_counter
from typing import Callable, Iterator, Optional, Set, Union
from .errors import TreehashError, WalkError
from .hashing import Hasher

DEFAULT_WORKERS = min(32, (os.cpu_count() or 1) + 4)

log = logging.getLogger(__name__)


class ScanCancelled(TreehashError):
    """Raised when a scan is stopped by `TreeHasher.cancel()`"""


@dataclass(frozen=True)
class Result:
    path: Path
    digest: Optional[str] = None
    error: Optional[OSError] = None

    def __post_init__(self) -> None:
        if (self.digest is None) == (self.error is None):
            raise ValueError("Exactly one of digest and error must be set")

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScanSummary:
    root: Path
    discovered: int = 0
    digested: int = 0
    failed: int = 0
    walk_error: Optional[WalkError] = None
    cancelled: bool = False
    elapsed: float = 0.0

    @property
    def reported(self) -> int:
        return self.digested + self.failed

    def add(self, result: Result) -> None:
        if result.ok:
            self.digested += 1
        else:
            self.failed += 1


@dataclass
class TreeHasher(ABC):
    workers: int = DEFAULT_WORKERS
    hasher: Hasher = field(default_factory=Hasher)
    queue_size: Optional[int] = None
    on_discover: Optional[Callable[[Path], None]] = None
    _cancellers: Set[Callable[[], None]] = field(
        default_factory=set, init=False, repr=False, compare=False
    )
    _lock: Lock = field(default_factory=Lock, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be positive")
        if self.queue_size is not None and self.queue_size < 0:
            raise ValueError("queue_size must be nonnegative")

    @abstractmethod
    def run(
        self,
        dirpath: Union[str, Path],
        sink: Callable[[Result], None],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> None:
        """
        Digest every file beneath ``dirpath``, passing each `Result` to
        ``sink`` as it arrives.  Raises `WalkError` once every file discovered
        before a traversal failure has been passed to ``sink``.  ``on_path``,
        if given, is called with each path as it is discovered, after
        ``on_discover``.
        """
        ...

    def scan(
        self, dirpath: Union[str, Path], sink: Callable[[Result], None]
    ) -> ScanSummary:
        summary = ScanSummary(root=Path(dirpath))

        def tally(r: Result) -> None:
            summary.add(r)
            sink(r)

        def count(_: Path) -> None:
            summary.discovered += 1

        log.info("Scanning %s with %d workers", dirpath, self.workers)
        start = perf_counter()
        try:
            self.run(dirpath, tally, on_path=count)
        except WalkError as e:
            log.error("Walk of %s failed: %s", dirpath, e)
            summary.walk_error = e
        except ScanCancelled:
            log.warning("Scan of %s cancelled", dirpath)
            summary.cancelled = True
        summary.elapsed = perf_counter() - start
        log.info(
            "Scanned %s: %d digested, %d failed in %g seconds",
            dirpath,
            summary.digested,
            summary.failed,
            summary.elapsed,
        )
        return summary

    def cancel(self) -> None:
        """Stop every scan currently running on this instance"""
        with self._lock:
            cancellers = list(self._cancellers)
        for c in cancellers:
            c()

    def digest(self, path: Path) -> Result:
        try:
            return Result(path=path, digest=self.hasher(path))
        except OSError as e:
            log.debug("Error digesting %s: %s", path, e)
            return Result(path=path, error=e)

    def discoverer(
        self, on_path: Optional[Callable[[Path], None]] = None
    ) -> Callable[[Path], None]:
        def discover(path: Path) -> None:
            log.debug("Discovered %s", path)
            if self.on_discover is not None:
                self.on_discover(path)
            if on_path is not None:
                on_path(path)

        return discover

    @contextmanager
    def registered(self, canceller: Callable[[], None]) -> Iterator[None]:
        with self._lock:
            self._cancellers.add(canceller)
        try:
            yield
        finally:
            with self._lock:
                self._cancellers.discard(canceller)
