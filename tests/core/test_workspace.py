from __future__ import annotations

import pytest

from math_genius.core import workspace


def test_ensure_workspace_creates_directories(tmp_path, monkeypatch):
    root = tmp_path / "data"
    monkeypatch.setenv(workspace.DATA_HOME_ENV, str(root))

    layout = workspace.ensure_workspace()

    assert layout.home == root
    assert layout.config_dir == root / "config"
    assert layout.logs_dir == root / "logs"
    assert layout.config_dir.is_dir()
    assert layout.logs_dir.is_dir()


def test_ensure_workspace_is_idempotent(tmp_path):
    first = workspace.ensure_workspace(path=tmp_path / "home")
    second = workspace.ensure_workspace(path=tmp_path / "home")

    assert first == second


def test_explicit_path_beats_environment(tmp_path):
    custom = tmp_path / "custom-root"

    layout = workspace.ensure_workspace(
        env={workspace.DATA_HOME_ENV: str(tmp_path / "ignored")},
        path=custom,
    )

    assert layout.home == custom
    assert not (tmp_path / "ignored").exists()


def test_ensure_workspace_without_create(tmp_path):
    root = tmp_path / "deferred"

    layout = workspace.ensure_workspace(
        env={workspace.DATA_HOME_ENV: str(root)}, create=False
    )

    assert layout.home == root
    assert not root.exists()


def test_default_home_without_environment(monkeypatch):
    layout = workspace.ensure_workspace(env={}, create=False)

    assert layout.home == workspace.DEFAULT_DATA_HOME


def test_file_in_place_of_home_is_rejected(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=blocker)


def test_file_in_place_of_subdirectory_is_rejected(tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    (home / "logs").write_text("x", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError, match="logs"):
        workspace.ensure_workspace(path=home, create=False)


def test_unknown_directory_key(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path, create=False)

    with pytest.raises(KeyError):
        layout.path_for("cache")
