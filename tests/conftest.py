"""Shared test fixtures for om."""

from __future__ import annotations

from pathlib import Path

import pytest

from om.session import SessionStore


def walk_lister(root: Path) -> list[str]:
    """Stand-in for ``git ls-files``: every regular file under root."""
    return sorted(
        p.relative_to(root).as_posix()
        for p in root.rglob("*")
        if p.is_file() and ".git" not in p.relative_to(root).parts
    )


@pytest.fixture(autouse=True)
def fake_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch) -> Path:
    """Point HOME at an empty directory so no real ~/.omignore or session leaks in."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("OM_SESSION", raising=False)
    return home


@pytest.fixture()
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "sessions")


@pytest.fixture()
def sample_repo(tmp_path: Path) -> Path:
    """A README, an entry point and a test file."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "tests").mkdir()
    (root / "README.md").write_text("# Test Project\n", encoding="utf-8")
    (root / "src" / "main.rs").write_text("fn main() {}\n", encoding="utf-8")
    (root / "tests" / "foo_test.rs").write_text(
        "#[test]\nfn foo() {}\n", encoding="utf-8"
    )
    return root


@pytest.fixture()
def mixed_repo(sample_repo: Path) -> Path:
    """sample_repo plus binary, empty, oversized and vendored files."""
    (sample_repo / "src" / "handler.rs").write_text(
        "pub fn handle() {}\n", encoding="utf-8"
    )
    (sample_repo / "vendor").mkdir()
    (sample_repo / "vendor" / "helper.rs").write_text(
        "pub fn vendor() {}\n", encoding="utf-8"
    )
    (sample_repo / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\0" * 64)
    (sample_repo / "empty.txt").write_text("", encoding="utf-8")
    (sample_repo / "big.txt").write_text("a" * (100 * 1024 + 1), encoding="utf-8")
    return sample_repo


@pytest.fixture()
def lister():
    return walk_lister
