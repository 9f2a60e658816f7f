from __future__ import annotations
import os
from pathlib import Path
from threading import Event
from typing import Any
import pytest
from treehash.errors import WalkError
from treehash.walker import walk_files
from conftest import create_tree


def test_walk_files(tmp_path: Path) -> None:
    create_tree(
        tmp_path,
        {
            "a.txt": "hello",
            "b": {"c.txt": "", "d": {"e.txt": "e"}},
            "empty": {},
            "z.txt": "z",
        },
    )
    assert sorted(walk_files(tmp_path)) == [
        tmp_path / "a.txt",
        tmp_path / "b" / "c.txt",
        tmp_path / "b" / "d" / "e.txt",
        tmp_path / "z.txt",
    ]


def test_walk_empty_dir(tmp_path: Path) -> None:
    assert list(walk_files(tmp_path)) == []


def test_walk_accepts_str(tmp_path: Path) -> None:
    (tmp_path / "f").touch()
    assert list(walk_files(str(tmp_path))) == [tmp_path / "f"]


def test_walk_file_root(tmp_path: Path) -> None:
    p = tmp_path / "f"
    p.touch()
    assert list(walk_files(p)) == [p]


def test_walk_missing_root(tmp_path: Path) -> None:
    with pytest.raises(WalkError) as excinfo:
        list(walk_files(tmp_path / "nonexistent"))
    assert excinfo.value.path == tmp_path / "nonexistent"
    assert isinstance(excinfo.value.cause, FileNotFoundError)


def test_walk_does_not_follow_symlinks(tmp_path: Path) -> None:
    create_tree(tmp_path, {"real": {"f.txt": "x"}})
    (tmp_path / "link").symlink_to(tmp_path / "real", target_is_directory=True)
    (tmp_path / "dangling").symlink_to(tmp_path / "nonexistent")
    assert sorted(walk_files(tmp_path)) == [
        tmp_path / "dangling",
        tmp_path / "link",
        tmp_path / "real" / "f.txt",
    ]


def test_walk_error_keeps_yielded_paths(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    create_tree(tmp_path, {"a.txt": "a", "bad": {"x.txt": "x"}})
    real_scandir = os.scandir

    def scandir(path: Any) -> Any:
        if Path(path).name == "bad":
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", scandir)
    seen = []
    with pytest.raises(WalkError) as excinfo:
        for p in walk_files(tmp_path):
            seen.append(p)
    assert seen == [tmp_path / "a.txt"]
    assert excinfo.value.path == tmp_path / "bad"
    assert str(excinfo.value) == f"{tmp_path / 'bad'} (Permission denied)"


def test_walk_cancel(tmp_path: Path) -> None:
    create_tree(tmp_path, {f"f{i}": "" for i in range(10)})
    cancel = Event()
    seen = []
    for p in walk_files(tmp_path, cancel=cancel):
        seen.append(p)
        if len(seen) == 3:
            cancel.set()
    assert len(seen) == 3
