from __future__ import annotations
import logging
import os
from pathlib import Path
import stat
from threading import Event
from typing import Iterator, List, Optional, Union
from .errors import WalkError

log = logging.getLogger(__name__)


def walk_files(
    dirpath: Union[str, Path], cancel: Optional[Event] = None
) -> Iterator[Path]:
    """
    Yield every non-directory entry beneath ``dirpath``, depth first.
    Symlinks are not followed and are yielded like files.  The first error
    reading a directory ends the walk by raising `WalkError`.  If ``cancel`` is
    set, the walk stops early without error.
    """
    root = Path(dirpath)
    try:
        st = os.lstat(root)
    except OSError as e:
        raise WalkError(root, e)
    if not stat.S_ISDIR(st.st_mode):
        yield root
        return
    dirs: List[Path] = [root]
    while dirs:
        if cancel is not None and cancel.is_set():
            log.debug("Walk of %s cancelled", root)
            return
        path = dirs.pop()
        try:
            with os.scandir(path) as entries:
                children = sorted(entries, key=lambda e: e.name)
        except OSError as e:
            raise WalkError(path, e)
        subdirs = []
        for entry in children:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                raise WalkError(entry.path, e)
            if is_dir:
                subdirs.append(Path(entry.path))
            else:
                if cancel is not None and cancel.is_set():
                    log.debug("Walk of %s cancelled", root)
                    return
                yield Path(entry.path)
        dirs.extend(reversed(subdirs))
