"""Tests for path management."""

from pathlib import Path

from kgstore.config.paths import (
    ENV_VAR,
    get_all_paths,
    get_config_path,
    get_graph_dir,
    get_kgstore_home,
)


class TestGetKgstoreHome:
    """Tests for get_kgstore_home()."""

    def test_default_is_home_dot_kgstore(self, monkeypatch):
        # Clear env var and cache
        monkeypatch.delenv(ENV_VAR, raising=False)
        get_kgstore_home.cache_clear()

        assert get_kgstore_home() == Path.home() / ".kgstore"

    def test_respects_env_var(self, monkeypatch, tmp_path):
        custom_path = tmp_path / "custom-kgstore"
        monkeypatch.setenv(ENV_VAR, str(custom_path))
        get_kgstore_home.cache_clear()

        assert get_kgstore_home() == custom_path

    def test_expands_tilde_in_env_var(self, monkeypatch):
        monkeypatch.setenv(ENV_VAR, "~/my-kgstore")
        get_kgstore_home.cache_clear()

        assert get_kgstore_home() == Path.home().resolve() / "my-kgstore"

    def test_is_cached(self, monkeypatch, tmp_path):
        monkeypatch.setenv(ENV_VAR, str(tmp_path / "first"))
        get_kgstore_home.cache_clear()
        first = get_kgstore_home()

        monkeypatch.setenv(ENV_VAR, str(tmp_path / "second"))
        assert get_kgstore_home() == first

        get_kgstore_home.cache_clear()


class TestDerivedPaths:
    """Tests for derived path functions."""

    def test_config_path(self, kgstore_home):
        assert get_config_path() == kgstore_home / "config.toml"

    def test_graph_dir(self, kgstore_home):
        assert get_graph_dir() == kgstore_home / "graph"

    def test_get_all_paths(self, kgstore_home):
        paths = get_all_paths()

        assert paths == {
            "home": kgstore_home,
            "config": kgstore_home / "config.toml",
            "graph": kgstore_home / "graph",
        }
