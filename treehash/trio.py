from __future__ import annotations
from dataclasses import dataclass
import logging
from pathlib import Path
import sys
from typing import Callable, List, Optional, Union
import trio
from .bases import Result, ScanCancelled, TreeHasher
from .errors import WalkError
from .walker import walk_files

if sys.version_info < (3, 11):
    from exceptiongroup import BaseExceptionGroup

log = logging.getLogger(__name__)


@dataclass
class TrioScan:
    root: Path
    token: trio.lowlevel.TrioToken
    scope: trio.CancelScope
    discover: Callable[[Path], None]
    walk_error: Optional[WalkError] = None

    def cancel(self) -> None:
        try:
            in_run = trio.lowlevel.current_trio_token() is self.token
        except RuntimeError:
            in_run = False
        if in_run:
            self.scope.cancel()
        else:
            try:
                trio.from_thread.run_sync(self.scope.cancel, trio_token=self.token)
            except trio.RunFinishedError:
                pass


class TrioTreeHasher(TreeHasher):
    """
    Worker pool of trio tasks connected by memory channels.  Each worker holds
    its own clones of the job receiver and the result sender; trio ends the
    result stream once the last sender clone has been closed, i.e., once every
    worker has returned.
    """

    def run(
        self,
        dirpath: Union[str, Path],
        sink: Callable[[Result], None],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> None:
        try:
            trio.run(self.async_run, Path(dirpath), sink, on_path)
        except BaseExceptionGroup as eg:
            # Report the first failure, as the threaded backends do
            errors = leaf_exceptions(eg)
            for e in errors[1:]:
                log.debug("Additional error while scanning %s: %r", dirpath, e)
            raise errors[0] from None

    async def async_run(
        self,
        dirpath: Path,
        sink: Callable[[Result], None],
        on_path: Optional[Callable[[Path], None]] = None,
    ) -> None:
        with trio.CancelScope() as scope:
            scan = TrioScan(
                root=dirpath,
                token=trio.lowlevel.current_trio_token(),
                scope=scope,
                discover=self.discoverer(on_path),
            )
            with self.registered(scan.cancel):
                async with trio.open_nursery() as nursery:
                    job_sender, job_receiver = trio.open_memory_channel(
                        self.queue_size or 0
                    )
                    result_sender, result_receiver = trio.open_memory_channel(0)
                    nursery.start_soon(self.async_dispatch, scan, job_sender)
                    async with job_receiver, result_sender:
                        for _ in range(self.workers):
                            nursery.start_soon(
                                self.async_worker,
                                job_receiver.clone(),
                                result_sender.clone(),
                            )
                    async with result_receiver:
                        async for r in result_receiver:
                            sink(r)
        if scope.cancelled_caught:
            raise ScanCancelled(dirpath)
        if scan.walk_error is not None:
            raise scan.walk_error

    async def async_dispatch(
        self, scan: TrioScan, sender: trio.MemorySendChannel[Path]
    ) -> None:
        paths = walk_files(scan.root)
        async with sender:
            try:
                while True:
                    path = await trio.to_thread.run_sync(next, paths, None)
                    if path is None:
                        break
                    scan.discover(path)
                    await sender.send(path)
            except WalkError as e:
                scan.walk_error = e
            finally:
                paths.close()
        log.debug("Dispatcher for %s finished", scan.root)

    async def async_worker(
        self,
        receiver: trio.MemoryReceiveChannel[Path],
        sender: trio.MemorySendChannel[Result],
    ) -> None:
        async with receiver, sender:
            async for path in receiver:
                await sender.send(await self.async_digest(path))

    async def async_digest(self, path: Path) -> Result:
        try:
            return Result(path=path, digest=await self.hasher.digest_async(path))
        except OSError as e:
            log.debug("Error digesting %s: %s", path, e)
            return Result(path=path, error=e)


def leaf_exceptions(eg: BaseExceptionGroup) -> List[BaseException]:
    leaves: List[BaseException] = []
    for e in eg.exceptions:
        if isinstance(e, BaseExceptionGroup):
            leaves.extend(leaf_exceptions(e))
        else:
            leaves.append(e)
    return leaves
