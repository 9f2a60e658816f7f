from __future__ import annotations
from abc import abstractmethod
from contextlib import closing
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Callable, Iterator, List, Optional, Union
from .bases import Result, ScanCancelled, TreeHasher
from .channels import Channel, WaitGroup
from .errors import WalkError
from .walker import walk_files

log = logging.getLogger(__name__)


class Dispatcher(Thread):
    """
    Walks ``root`` and sends each file path on ``jobs``, closing ``jobs`` once
    the walk is over, whether it finished, failed, or was cancelled.  A
    traversal failure is stored in ``walk_error``; any other exception is
    passed to ``on_failure``.
    """

    def __init__(
        self,
        root: Path,
        jobs: Channel[Path],
        stop: Event,
        discover: Callable[[Path], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        super().__init__(name=f"treehash.dispatch {root}", daemon=True)
        self.root = root
        self.jobs = jobs
        self.stop = stop
        self.discover = discover
        self.on_failure = on_failure
        self.walk_error: Optional[WalkError] = None

    def run(self) -> None:
        try:
            for path in walk_files(self.root, cancel=self.stop):
                self.discover(path)
                if not self.jobs.send(path):
                    break
        except WalkError as e:
            self.walk_error = e
        except Exception as e:
            log.exception("Error walking %s", self.root)
            self.on_failure(e)
        finally:
            self.jobs.close()
            log.debug("Dispatcher for %s finished", self.root)


class ThreadedBase(TreeHasher):
    """Base for backends whose results are consumed by iterating on a thread"""

    @abstractmethod
    def iter_results(
        self,
        dirpath: Union[str, Path],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> Iterator[Result]:
        """
        Yield a `Result` for every file beneath ``dirpath`` in order of
        completion.  Once all results have been yielded, raises the
        `WalkError` that ended the traversal, if any.  Closing the iterator
        early cancels the scan.
        """
        ...

    def run(
        self,
        dirpath: Union[str, Path],
        sink: Callable[[Result], None],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> None:
        with closing(self.iter_results(dirpath, on_path)) as results:
            for r in results:
                sink(r)

    def job_queue(self) -> Channel[Path]:
        return Channel(self.queue_size or self.workers)


class ThreadedTreeHasher(ThreadedBase):
    def iter_results(
        self,
        dirpath: Union[str, Path],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> Iterator[Result]:
        scan = ThreadedScan(self, Path(dirpath), on_path)
        with self.registered(scan.cancel):
            yield from scan


class ThreadedScan:
    """
    A single run of `ThreadedTreeHasher`: one dispatcher thread, a fixed set
    of worker threads, and a watcher thread that closes the result channel
    once every worker has finished.
    """

    def __init__(
        self,
        owner: ThreadedTreeHasher,
        root: Path,
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> None:
        self.owner = owner
        self.root = root
        self.stop = Event()
        self.jobs: Channel[Path] = owner.job_queue()
        self.results: Channel[Result] = Channel(owner.workers)
        self.running = WaitGroup(owner.workers)
        self.failure: Optional[BaseException] = None
        self.dispatcher = Dispatcher(
            root, self.jobs, self.stop, owner.discoverer(on_path), self.fail
        )
        self.threads: List[Thread] = [self.dispatcher]
        self.threads.extend(
            Thread(target=self.work, name=f"treehash.worker {i} {root}", daemon=True)
            for i in range(owner.workers)
        )
        self.threads.append(
            Thread(target=self.watch, name=f"treehash.watch {root}", daemon=True)
        )

    def __iter__(self) -> Iterator[Result]:
        for t in self.threads:
            t.start()
        drained = False
        try:
            yield from self.results
            drained = True
        finally:
            if not drained:
                self.cancel()
            for t in self.threads:
                t.join()
        if self.failure is not None:
            raise self.failure
        if self.stop.is_set():
            raise ScanCancelled(self.root)
        if self.dispatcher.walk_error is not None:
            raise self.dispatcher.walk_error

    def cancel(self) -> None:
        self.stop.set()
        self.jobs.cancel()
        self.results.cancel()

    def fail(self, e: BaseException) -> None:
        if self.failure is None:
            self.failure = e
        self.cancel()

    def work(self) -> None:
        try:
            for path in self.jobs:
                if not self.results.send(self.owner.digest(path)):
                    break
        except Exception as e:
            log.exception("Worker error while scanning %s", self.root)
            self.fail(e)
        finally:
            self.running.done()

    def watch(self) -> None:
        self.running.wait()
        self.results.close()
        log.debug("All workers for %s finished", self.root)
