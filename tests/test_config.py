"""Tests for config loading."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from om.config import GLOBAL_CONFIG, REPO_CONFIG, Config, load_config


def _write_global(home: Path, text: str) -> None:
    path = home / GLOBAL_CONFIG
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class TestFromDict:
    """Tests for Config.from_dict."""

    def test_known_keys(self) -> None:
        config = Config.from_dict({"min_score": 6, "flat": True, "level": 8})
        assert config == Config(min_score=6, flat=True, level=8)

    def test_wrong_types_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="om.config"):
            config = Config.from_dict({"min_score": "high", "flat": 1, "depth": True})
        assert config == Config()
        assert "min_score" in caplog.text

    def test_unknown_key_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="om.config"):
            config = Config.from_dict({"colour": "always"})
        assert config == Config()
        assert "colour" in caplog.text


class TestMerge:
    """Tests for Config.merge."""

    def test_only_set_values_override(self) -> None:
        base = Config(min_score=3, flat=True)
        base.merge(Config(min_score=7))
        assert base == Config(min_score=7, flat=True)


class TestLoadConfig:
    """Tests for load_config."""

    def test_nothing_on_disk(self, tmp_path: Path) -> None:
        assert load_config(tmp_path, home=tmp_path / "home") == Config()

    def test_repo_overrides_global(self, tmp_path: Path) -> None:
        home = tmp_path / "home"
        repo = tmp_path / "repo"
        repo.mkdir()
        _write_global(home, "min_score = 4\nno_color = true\n")
        (repo / REPO_CONFIG).write_text("min_score = 8\n", encoding="utf-8")

        config = load_config(repo, home=home)
        assert config.min_score == 8
        assert config.no_color is True

    def test_defaults_to_user_home(self, fake_home: Path) -> None:
        _write_global(fake_home, "level = 9\n")
        assert load_config().level == 9

    def test_broken_file_ignored(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / REPO_CONFIG).write_text("min_score = = 3\n", encoding="utf-8")
        with caplog.at_level(logging.WARNING, logger="om.config"):
            config = load_config(tmp_path, home=tmp_path / "home")
        assert config == Config()
        assert "unreadable" in caplog.text
