"""Player preferences loaded from TOML.

The file mirrors what the host application's preferences screen stores:
default difficulty, topic, question count and time limit, plus the sound and
haptic toggles that feedback hosts honour. Session feature flags and logging
options live alongside so one file configures a whole run. The core only
reads this file; :func:`write_template` exists for ``math-genius init``.
"""

from __future__ import annotations

import copy
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from .core.workspace import ensure_workspace
from .quiz.controller import SessionFeatures
from .quiz.errors import ConfigurationError
from .quiz.models import (
    Category,
    Difficulty,
    GenerationRequest,
    SessionSettings,
    clamp_question_count,
    clamp_time_limit,
)

__all__ = [
    "CONFIG_PATH_ENV",
    "CONFIG_FILENAME",
    "GamePreferences",
    "LoggingPreferences",
    "Preferences",
    "config_template",
    "default_tree",
    "load_preferences",
    "resolve_config_path",
    "write_template",
]


CONFIG_PATH_ENV = "MATH_GENIUS_CONFIG"
CONFIG_FILENAME = "preferences.toml"


@dataclass(frozen=True)
class GamePreferences:
    difficulty: Difficulty
    category: Category
    question_count: int
    time_limit_seconds: int
    sound_enabled: bool
    haptic_enabled: bool
    seed: Optional[int] = None

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            category=self.category,
            difficulty=self.difficulty,
            count=self.question_count,
        )

    def to_settings(self) -> SessionSettings:
        return SessionSettings(
            self.to_request(), time_limit_seconds=self.time_limit_seconds
        )


@dataclass(frozen=True)
class LoggingPreferences:
    level: str
    verbose: bool


@dataclass(frozen=True)
class Preferences:
    game: GamePreferences
    session: SessionFeatures
    logging: LoggingPreferences


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{field}' must be a boolean.")
    return value


def _require_int(
    value: Any, *, field: str, minimum: Optional[int] = 0
) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{field}' must be an integer.")
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"'{field}' must be at least {minimum}.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigurationError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_choice(enum_cls, value: Any, *, field: str):
    try:
        return enum_cls.parse(value)
    except ValueError as exc:
        raise ConfigurationError(f"'{field}': {exc}") from exc


def _build_game(section: Mapping[str, Any]) -> GamePreferences:
    # Counts and limits outside the playable range are clamped, not rejected.
    count = _require_int(
        section.get("question_count"),
        field="game.question_count",
        minimum=None,
    )
    time_limit = _require_int(
        section.get("time_limit_seconds"),
        field="game.time_limit_seconds",
        minimum=None,
    )
    seed = section.get("seed")
    if seed is not None:
        seed = _require_int(seed, field="game.seed")
    return GamePreferences(
        difficulty=_require_choice(
            Difficulty, section.get("difficulty"), field="game.difficulty"
        ),
        category=_require_choice(
            Category, section.get("category"), field="game.category"
        ),
        question_count=clamp_question_count(count),
        time_limit_seconds=clamp_time_limit(time_limit),
        sound_enabled=_require_bool(
            section.get("sound_enabled"), field="game.sound_enabled"
        ),
        haptic_enabled=_require_bool(
            section.get("haptic_enabled"), field="game.haptic_enabled"
        ),
        seed=seed,
    )


def _build_session(section: Mapping[str, Any]) -> SessionFeatures:
    return SessionFeatures(
        track_streaks=_require_bool(
            section.get("track_streaks"), field="session.track_streaks"
        ),
        track_response_time=_require_bool(
            section.get("track_response_time"),
            field="session.track_response_time",
        ),
        auto_advance=_require_bool(
            section.get("auto_advance"), field="session.auto_advance"
        ),
        feedback_delay_seconds=_require_float_range(
            section.get("feedback_delay_seconds"),
            field="session.feedback_delay_seconds",
            min_value=0.0,
            max_value=10.0,
        ),
        time_warning_seconds=_require_int(
            section.get("time_warning_seconds"),
            field="session.time_warning_seconds",
        ),
        streak_event_threshold=_require_int(
            section.get("streak_event_threshold"),
            field="session.streak_event_threshold",
        ),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingPreferences:
    level = section.get("level")
    if not isinstance(level, str) or not level.strip():
        raise ConfigurationError("'logging.level' must be a non-empty string.")
    level = level.strip().upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigurationError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingPreferences(level=level, verbose=verbose)


def _read_preferences(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Preferences file not found: {path}"
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Failed to parse preferences {path.name}: {exc}"
        ) from exc


def _apply_overrides(
    tree: MutableMapping[str, Any],
    overrides: Mapping[str, Any],
    *,
    section: str = "",
) -> None:
    """Overlay file values onto the defaults.

    Only keys already present in :data:`_DEFAULTS` are accepted; sections
    must stay tables.
    """

    for key, value in overrides.items():
        dotted = f"{section}{key}"
        if key not in tree:
            raise ConfigurationError(
                f"Unknown configuration key '{dotted}'."
            )
        current = tree[key]
        if isinstance(current, MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigurationError(
                    f"Expected table for [{dotted}], "
                    f"found {type(value).__name__}."
                )
            _apply_overrides(current, value, section=f"{dotted}.")
        else:
            tree[key] = value


def _build_preferences(tree: Mapping[str, Any]) -> Preferences:
    return Preferences(
        game=_build_game(tree["game"]),
        session=_build_session(tree["session"]),
        logging=_build_logging(tree["logging"]),
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Return the preferences path: explicit, then env, then data home."""

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return explicit_path.expanduser().resolve()
    override = (env_map.get(CONFIG_PATH_ENV) or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    layout = ensure_workspace(env=env_map, create=False)
    return layout.config_dir / CONFIG_FILENAME


def load_preferences(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Preferences:
    """Load preferences, falling back to defaults when no file exists.

    An explicitly requested file must exist; the default location may not.
    """

    tree = default_tree()
    path = resolve_config_path(explicit_path=explicit_path, env=env)
    if explicit_path is not None or path.exists():
        _apply_overrides(tree, _read_preferences(path))
    return _build_preferences(tree)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default preference tree."""

    return copy.deepcopy(_DEFAULTS)


def config_template() -> str:
    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the commented preferences template for ``math-genius init``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise ConfigurationError(f"Preferences file already exists: {path}")
    path.write_text(config_template(), encoding="utf-8")
    path.chmod(mode)
    return path


_DEFAULTS: Dict[str, Any] = {
    "game": {
        "difficulty": "normal",
        "category": "addition",
        "question_count": 10,
        "time_limit_seconds": 30,
        "sound_enabled": True,
        "haptic_enabled": True,
        "seed": None,
    },
    "session": {
        "track_streaks": True,
        "track_response_time": True,
        "auto_advance": False,
        "feedback_delay_seconds": 0.8,
        "time_warning_seconds": 10,
        "streak_event_threshold": 3,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# Math Genius preferences

[game]
# easy, normal, genius or quantum
difficulty = "normal"
# addition, subtraction, multiplication, division, algebra, percentages,
# patterns (other topics fall back to addition)
category = "addition"
# Clamped to 1-50
question_count = 10
# Seconds per question, clamped to 5-300
time_limit_seconds = 30
sound_enabled = true
haptic_enabled = true
# Fix the random seed to replay the same questions
# seed = 1234

[session]
track_streaks = true
track_response_time = true
# Move on automatically after showing feedback
auto_advance = false
feedback_delay_seconds = 0.8
# Emit a warning when this many seconds remain (0 disables)
time_warning_seconds = 10
# Emit streak events from this many correct answers in a row
streak_event_threshold = 3

[logging]
level = "INFO"
verbose = false
"""
