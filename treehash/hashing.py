from __future__ import annotations
from dataclasses import dataclass
import hashlib
import logging
from pathlib import Path
import time
from typing import Union
import trio

DIGEST_BLOCK_SIZE = 1 << 16

DEFAULT_ALGORITHM = "sha256"

log = logging.getLogger(__name__)


def filedigest(filepath: Union[str, Path], algorithm: str = DEFAULT_ALGORITHM) -> str:
    dgst = hashlib.new(algorithm)
    with open(filepath, "rb") as fp:
        while True:
            block = fp.read(DIGEST_BLOCK_SIZE)
            if not block:
                break
            dgst.update(block)
    return dgst.hexdigest()


async def async_filedigest(
    filepath: Union[str, Path], algorithm: str = DEFAULT_ALGORITHM
) -> str:
    dgst = hashlib.new(algorithm)
    async with await trio.open_file(filepath, "rb") as fp:
        while True:
            blob = await fp.read(DIGEST_BLOCK_SIZE)
            if not blob:
                break
            dgst.update(blob)
    return dgst.hexdigest()


@dataclass(frozen=True)
class Hasher:
    """
    Computes the hex digest of a file's contents.  If ``retries`` is nonzero,
    an `OSError` is retried that many more times, ``retry_delay`` seconds
    apart, before being re-raised.
    """

    algorithm: str = DEFAULT_ALGORITHM
    retries: int = 0
    retry_delay: float = 0.1

    def __post_init__(self) -> None:
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"unsupported digest algorithm {self.algorithm!r}")
        # Variable-length digests cannot be produced with a plain hexdigest()
        if hashlib.new(self.algorithm).digest_size == 0:
            raise ValueError(
                f"variable-length digest algorithm {self.algorithm!r} not supported"
            )
        if self.retries < 0:
            raise ValueError("retries must be nonnegative")

    def __call__(self, filepath: Union[str, Path]) -> str:
        attempt = 0
        while True:
            try:
                return filedigest(filepath, self.algorithm)
            except OSError as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                log.debug(
                    "Error digesting %s: %s; retrying (%d/%d)",
                    filepath,
                    e,
                    attempt,
                    self.retries,
                )
                time.sleep(self.retry_delay)

    async def digest_async(self, filepath: Union[str, Path]) -> str:
        attempt = 0
        while True:
            try:
                return await async_filedigest(filepath, self.algorithm)
            except OSError as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                log.debug(
                    "Error digesting %s: %s; retrying (%d/%d)",
                    filepath,
                    e,
                    attempt,
                    self.retries,
                )
                await trio.sleep(self.retry_delay)
