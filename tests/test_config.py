"""Tests for pi.composer.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from pi.composer.config import (
    DEFAULT_POLL_INTERVAL,
    ComposerConfig,
)
from pi.composer.stdin_buffer import DEFAULT_ESCAPE_TIMEOUT


class TestComposerConfig:
    def test_defaults(self) -> None:
        config = ComposerConfig()
        assert config.control_dir == Path.home() / ".pi-talon"
        assert config.poll_interval == 0.25
        assert config.escape_timeout == 0.01
        assert config.kill_ring_size == 16
        assert config.wrap_width == 80

    def test_paths(self, tmp_path: Path) -> None:
        paths = ComposerConfig(control_dir=tmp_path).paths()
        assert paths.request_path == tmp_path / "request.json"
        assert paths.response_path == tmp_path / "response.json"
        assert paths.consumed_path == tmp_path / "consumed.sha256"
        assert paths.base_dir == tmp_path

    def test_ensure_dir_creates_directory(self, tmp_path: Path) -> None:
        paths = ComposerConfig(control_dir=tmp_path / "nested" / "talon").paths()
        paths.ensure_dir()
        assert paths.base_dir.is_dir()
        paths.ensure_dir()  # idempotent


class TestFromEnv:
    def test_reads_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PI_TALON_DIR", str(tmp_path))
        monkeypatch.setenv("PI_TALON_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("PI_COMPOSER_ESCAPE_TIMEOUT", "0.05")
        config = ComposerConfig.from_env()
        assert config.control_dir == tmp_path
        assert config.poll_interval == 0.5
        assert config.escape_timeout == 0.05

    def test_missing_environment_uses_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("PI_TALON_DIR", "PI_TALON_POLL_INTERVAL", "PI_COMPOSER_ESCAPE_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)
        config = ComposerConfig.from_env()
        assert config.control_dir == Path.home() / ".pi-talon"
        assert config.poll_interval == DEFAULT_POLL_INTERVAL

    @pytest.mark.parametrize("raw", ["fast", "0", "-1"])
    def test_invalid_numbers_fall_back(self, raw: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PI_TALON_POLL_INTERVAL", raw)
        monkeypatch.setenv("PI_COMPOSER_ESCAPE_TIMEOUT", raw)
        config = ComposerConfig.from_env()
        assert config.poll_interval == DEFAULT_POLL_INTERVAL
        assert config.escape_timeout == DEFAULT_ESCAPE_TIMEOUT

    def test_tilde_is_expanded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PI_TALON_DIR", "~/talon-test")
        assert ComposerConfig.from_env().control_dir == Path.home() / "talon-test"
