from __future__ import annotations
import hashlib
import os
from pathlib import Path
from typing import Dict, Iterable, Union
import pytest
from treehash import BACKENDS

Layout = Dict[str, Union[str, bytes, "Layout"]]

SHA256_HELLO = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
SHA256_EMPTY = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def create_tree(root: Path, layout: Layout) -> None:
    """
    Create files & directories beneath ``root``.  Dict values are
    subdirectories; strings and bytes are file contents.
    """
    root.mkdir(parents=True, exist_ok=True)
    for name, sublayout in layout.items():
        p = root / name
        if isinstance(sublayout, dict):
            create_tree(p, sublayout)
        elif isinstance(sublayout, str):
            p.write_text(sublayout)
        else:
            p.write_bytes(sublayout)


def expected_digests(root: Path) -> Dict[Path, str]:
    digests = {}
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            p = Path(dirpath, name)
            digests[p] = hashlib.sha256(p.read_bytes()).hexdigest()
    return digests


def flat_layout(qty: int) -> Layout:
    layout: Layout = {}
    for i in range(qty):
        layout.setdefault(f"d{i % 7}", {})[f"f{i}.dat"] = f"file {i}\n" * (i % 5)
    return layout


@pytest.fixture(params=list(BACKENDS))
def backend(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    create_tree(root, {"a.txt": "hello", "b": {"c.txt": ""}})
    return root


def as_dict(results: Iterable) -> Dict[Path, str]:
    return {r.path: r.digest for r in results}
