from __future__ import annotations
import hashlib
from pathlib import Path
from typing import List
import pytest
import trio
from treehash.hashing import DIGEST_BLOCK_SIZE, Hasher, async_filedigest, filedigest
from conftest import SHA256_EMPTY, SHA256_HELLO


def test_filedigest_hello(tmp_path: Path) -> None:
    p = tmp_path / "a.txt"
    p.write_text("hello")
    assert filedigest(p) == SHA256_HELLO


def test_filedigest_empty(tmp_path: Path) -> None:
    p = tmp_path / "empty"
    p.touch()
    assert filedigest(p) == SHA256_EMPTY
    assert filedigest(p, "md5") == hashlib.md5(b"").hexdigest()


def test_filedigest_multiple_blocks(tmp_path: Path) -> None:
    data = bytes(range(256)) * (DIGEST_BLOCK_SIZE // 256 * 3 + 7)
    p = tmp_path / "big.dat"
    p.write_bytes(data)
    assert filedigest(p) == hashlib.sha256(data).hexdigest()
    assert filedigest(p, "sha1") == hashlib.sha1(data).hexdigest()


def test_filedigest_independent_of_path(tmp_path: Path) -> None:
    (tmp_path / "x").write_bytes(b"same content")
    (tmp_path / "y").mkdir()
    (tmp_path / "y" / "z").write_bytes(b"same content")
    assert filedigest(tmp_path / "x") == filedigest(tmp_path / "y" / "z")


def test_filedigest_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        filedigest(tmp_path / "nonexistent")


def test_filedigest_directory(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        filedigest(tmp_path)


def test_async_filedigest(tmp_path: Path) -> None:
    p = tmp_path / "a.txt"
    p.write_text("hello")
    assert trio.run(async_filedigest, p) == SHA256_HELLO


def test_hasher_bad_algorithm() -> None:
    with pytest.raises(ValueError):
        Hasher(algorithm="nonesuch")


@pytest.mark.parametrize("algorithm", ["shake_128", "shake_256"])
def test_hasher_variable_length_algorithm(algorithm: str) -> None:
    with pytest.raises(ValueError, match="variable-length"):
        Hasher(algorithm=algorithm)


def test_hasher_bad_retries() -> None:
    with pytest.raises(ValueError):
        Hasher(retries=-1)


def test_hasher_no_retry_by_default(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: List[Path] = []

    def failing(filepath: Path, algorithm: str) -> str:
        calls.append(filepath)
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("treehash.hashing.filedigest", failing)
    with pytest.raises(PermissionError):
        Hasher()(tmp_path / "x")
    assert len(calls) == 1


def test_hasher_retries_then_succeeds(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: List[Path] = []

    def flaky(filepath: Path, algorithm: str) -> str:
        calls.append(filepath)
        if len(calls) < 3:
            raise OSError(5, "Input/output error")
        return "0123"

    monkeypatch.setattr("treehash.hashing.filedigest", flaky)
    assert Hasher(retries=2, retry_delay=0)(tmp_path / "x") == "0123"
    assert len(calls) == 3


def test_hasher_retries_exhausted(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: List[Path] = []

    def failing(filepath: Path, algorithm: str) -> str:
        calls.append(filepath)
        raise OSError(5, "Input/output error")

    monkeypatch.setattr("treehash.hashing.filedigest", failing)
    with pytest.raises(OSError):
        Hasher(retries=2, retry_delay=0)(tmp_path / "x")
    assert len(calls) == 3


def test_hasher_async_retries(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[Path] = []

    async def flaky(filepath: Path, algorithm: str) -> str:
        calls.append(filepath)
        if len(calls) < 2:
            raise OSError(5, "Input/output error")
        return "4567"

    monkeypatch.setattr("treehash.hashing.async_filedigest", flaky)
    hasher = Hasher(retries=1, retry_delay=0)
    assert trio.run(hasher.digest_async, tmp_path / "x") == "4567"
    assert len(calls) == 2
