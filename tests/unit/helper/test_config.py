# tests/unit/helper/test_config.py
"""Unit tests for config.py."""

import pytest

from spunge.helper.config import Options, SpongeCfg
from spunge.helper.errors import ConfigError


class TestOptions:
    def test_single_target(self):
        opts = Options.from_targets(["out.txt"], memory=True)
        assert opts.target == "out.txt"
        assert opts.memory is True
        assert opts.atomic is False
        assert opts.backup is None

    def test_no_target(self):
        with pytest.raises(ConfigError, match="Destination file required"):
            Options.from_targets([])

    def test_two_targets(self):
        with pytest.raises(ConfigError, match="one destination"):
            Options.from_targets(["a", "b"])

    def test_atomic_without_memory(self):
        with pytest.raises(ConfigError, match="--atomic makes no sense without --memory"):
            Options.from_targets(["a"], atomic=True)

    def test_atomic_with_memory(self):
        opts = Options.from_targets(["a"], atomic=True, memory=True)
        assert opts.atomic and opts.memory


class TestSpongeCfg:
    def test_defaults(self):
        cfg = SpongeCfg()
        assert cfg.read_size == 4096
        assert cfg.default_mode == 0o600
        assert cfg.sponge_prefix == ".sponge"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SPUNGE_READ_SIZE", "512")
        monkeypatch.setenv("SPUNGE_DEFAULT_MODE", "644")
        cfg = SpongeCfg.from_env()
        assert cfg.read_size == 512
        assert cfg.default_mode == 0o644

    def test_from_env_unset(self, monkeypatch):
        monkeypatch.delenv("SPUNGE_READ_SIZE", raising=False)
        monkeypatch.delenv("SPUNGE_DEFAULT_MODE", raising=False)
        assert SpongeCfg.from_env() == SpongeCfg()

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("SPUNGE_READ_SIZE", "lots")
        with pytest.raises(ConfigError, match="SPUNGE_READ_SIZE"):
            SpongeCfg.from_env()

    def test_non_positive_read_size(self):
        with pytest.raises(ConfigError):
            SpongeCfg(read_size=0)

    def test_mode_out_of_range(self):
        with pytest.raises(ConfigError):
            SpongeCfg(default_mode=0o10000)
