"""Data home resolution for math-genius preferences and logs."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

__all__ = [
    "DATA_HOME_ENV",
    "DEFAULT_DATA_HOME",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]


DATA_HOME_ENV = "MATH_GENIUS_DATA_HOME"
DEFAULT_DATA_HOME = Path.home() / ".math-genius-data"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
}


class WorkspaceError(RuntimeError):
    """Raised when the data home cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    @property
    def config_dir(self) -> Path:
        return self.path_for("config")

    @property
    def logs_dir(self) -> Path:
        return self.path_for("logs")


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve (and optionally create) the data home layout.

    Precedence: ``path``, then ``$MATH_GENIUS_DATA_HOME``, then
    ``~/.math-genius-data``. When the default location is not writable a
    directory under the system temp dir is used instead.
    """

    env_map = os.environ if env is None else env
    base, explicit = _resolve_base(env_map, path)
    candidates = [base]
    if create and not explicit:
        candidates.append(Path(tempfile.gettempdir()) / "math-genius-data")

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return _materialize(candidate, create=create)
        except PermissionError as exc:
            last_error = exc
    raise WorkspaceError(
        f"Unable to prepare workspace at {base}"
    ) from last_error


def _resolve_base(
    env: Mapping[str, str], override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        return override.expanduser().absolute(), True
    custom = (env.get(DATA_HOME_ENV) or "").strip()
    if custom:
        return Path(custom).expanduser().absolute(), True
    return DEFAULT_DATA_HOME, False


def _materialize(base: Path, *, create: bool) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {base}"
        )
    directories = {key: base / name for key, name in _SUBDIRS.items()}
    if create:
        for directory in (base, *directories.values()):
            directory.mkdir(parents=True, exist_ok=True)
            try:
                directory.chmod(0o700)
            except (PermissionError, NotImplementedError):
                pass
    for key, directory in directories.items():
        if directory.exists() and not directory.is_dir():
            raise WorkspaceError(
                f"Expected workspace directory for '{key}' but found a file: "
                f"{directory}"
            )
    return WorkspaceLayout(
        home=base, directories=MappingProxyType(directories)
    )
