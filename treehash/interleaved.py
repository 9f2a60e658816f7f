from __future__ import annotations
import logging
from pathlib import Path
from threading import Event
from typing import Callable, Iterator, Optional, Union
from interleave import interleave
from .bases import Result, ScanCancelled
from .channels import Channel
from .pipeline import Dispatcher, ThreadedBase

log = logging.getLogger(__name__)


class InterleaveTreeHasher(ThreadedBase):
    """
    Worker pool built from generators: each worker pulls paths from the job
    queue and yields results, and `interleave` runs the workers in threads and
    merges their outputs, ending once every worker has returned.
    """

    def iter_results(
        self,
        dirpath: Union[str, Path],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> Iterator[Result]:
        root = Path(dirpath)
        stop = Event()
        jobs = self.job_queue()
        failure: Optional[BaseException] = None

        def cancel() -> None:
            stop.set()
            jobs.cancel()

        def fail(e: BaseException) -> None:
            nonlocal failure
            failure = e
            cancel()

        dispatcher = Dispatcher(root, jobs, stop, self.discoverer(on_path), fail)
        with self.registered(cancel):
            dispatcher.start()
            try:
                with interleave(
                    [self.worker(jobs) for _ in range(self.workers)],
                    max_workers=self.workers,
                    thread_name_prefix=f"treehash.worker {root}",
                ) as it:
                    try:
                        yield from it
                    except BaseException:
                        # Wake up any workers blocked on the job queue before
                        # `interleave` waits for them
                        cancel()
                        raise
            finally:
                dispatcher.join()
        if failure is not None:
            raise failure
        if stop.is_set():
            raise ScanCancelled(root)
        if dispatcher.walk_error is not None:
            raise dispatcher.walk_error

    def worker(self, jobs: Channel[Path]) -> Iterator[Result]:
        for path in jobs:
            yield self.digest(path)
