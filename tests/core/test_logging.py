from __future__ import annotations

import json
import logging
import tempfile
from enum import Enum
from pathlib import Path

from math_genius.core import logging as core_logging


class _Colour(Enum):
    RED = "red"


def _managed(logger: logging.Logger, marker: str) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, marker, False)]


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "math_genius.test",
        log_dir=log_dir,
        level="INFO",
        verbose=False,
        filename="test.log",
    )

    logger.info("hello world", extra={"phase": _Colour.RED, "value": 3})
    logger.debug("filtered out")

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "value": {"items": [Path(log_dir), 1], "mapping": {"k": "v"}},
                "obj": _Helper(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["message"] == "hello world"
    assert first["level"] == "INFO"
    assert first["extra"] == {"phase": "red", "value": 3}

    payload = json.loads(lines[-1])
    assert "ValueError: boom" in payload["exception"]
    assert payload["extra"]["obj"] == "helper"
    assert payload["extra"]["value"]["items"] == [str(log_dir), 1]

    core_logging.reset_logger("math_genius.test")


def test_default_log_file_name_follows_logger(tmp_path):
    _, log_path = core_logging.configure_logger(log_dir=tmp_path)

    assert log_path == tmp_path / "math_genius.log"


def test_console_handler_toggle(tmp_path):
    name = "math_genius.test_toggle"
    logger, _ = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_managed(logger, "_math_genius_console")) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_managed(logger, "_math_genius_console")) == 1
    assert len(_managed(logger, "_math_genius_file")) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=False, filename="toggle.log"
    )
    assert _managed(logger, "_math_genius_console") == []

    core_logging.reset_logger(name)
    assert logger.handlers == []
    assert logger.propagate is True


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    fallback = tmp_path / "fallback"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback)

    _, log_path = core_logging.configure_logger(
        "math_genius.test_blocked", log_dir=target, filename="blocked.log"
    )

    assert log_path == fallback / "blocked.log"
    assert log_path.exists()
    core_logging.reset_logger("math_genius.test_blocked")


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_log_dir() == tmp_path / "math-genius-logs"


def test_unknown_level_falls_back_to_info():
    assert core_logging._coerce_level("chatty") == logging.INFO
    assert core_logging._coerce_level("warning") == logging.WARNING
