"""
Digest every file in a directory tree using a pool of concurrent workers
"""

from .bases import DEFAULT_WORKERS, Result, ScanCancelled, ScanSummary, TreeHasher
from .errors import ChannelClosedError, TreehashError, WalkError
from .hashing import Hasher, filedigest
from .interleaved import InterleaveTreeHasher
from .pipeline import ThreadedTreeHasher
from .trio import TrioTreeHasher
from .walker import walk_files

__version__ = "0.1.0"

__all__ = [
    "BACKENDS",
    "ChannelClosedError",
    "DEFAULT_WORKERS",
    "Hasher",
    "InterleaveTreeHasher",
    "Result",
    "ScanCancelled",
    "ScanSummary",
    "ThreadedTreeHasher",
    "TreeHasher",
    "TreehashError",
    "TrioTreeHasher",
    "WalkError",
    "filedigest",
    "walk_files",
]

BACKENDS = {
    "threads": ThreadedTreeHasher,
    "interleave": InterleaveTreeHasher,
    "trio": TrioTreeHasher,
}
