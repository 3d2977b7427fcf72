"""Shared logging and data-home helpers."""

from __future__ import annotations

from .logging import (
    LOGGER_NAME,
    JsonLogFormatter,
    configure_logger,
    reset_logger,
)
from .workspace import (
    DATA_HOME_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "LOGGER_NAME",
    "JsonLogFormatter",
    "configure_logger",
    "reset_logger",
    "DATA_HOME_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
