import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError, ensure_workspace
from ..preferences import (
    Preferences,
    load_preferences,
    resolve_config_path,
    write_template,
)
from .errors import ConfigurationError, GenerationError
from .generator import QuestionGenerator
from .models import (
    Category,
    Difficulty,
    GenerationRequest,
    SessionSettings,
)
from .play import run_terminal_game
from .view import render_question_bank


def _enum_type(enum_cls):
    def _parse(value: str):
        try:
            return enum_cls.parse(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from exc

    _parse.__name__ = enum_cls.__name__.lower()
    return _parse


def _load(args: argparse.Namespace) -> Preferences:
    explicit = getattr(args, "config", None)
    return load_preferences(explicit_path=explicit)


def _setup_logging(prefs: Preferences, *, verbose: bool) -> None:
    layout = ensure_workspace()
    configure_logger(
        log_dir=layout.logs_dir,
        level=prefs.logging.level,
        verbose=verbose or prefs.logging.verbose,
    )


def _request_from(
    args: argparse.Namespace, prefs: Preferences
) -> GenerationRequest:
    game = prefs.game
    return GenerationRequest(
        category=args.topic or game.category,
        difficulty=args.difficulty or game.difficulty,
        count=args.count if args.count is not None else game.question_count,
    )


def _seed_from(args: argparse.Namespace, prefs: Preferences) -> Optional[int]:
    return args.seed if args.seed is not None else prefs.game.seed


def _cmd_play(args: argparse.Namespace) -> int:
    console = Console()
    try:
        prefs = _load(args)
        _setup_logging(prefs, verbose=args.verbose)
    except (ConfigurationError, WorkspaceError) as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 2

    request = _request_from(args, prefs)
    time_limit = (
        args.time_limit
        if args.time_limit is not None
        else prefs.game.time_limit_seconds
    )
    settings = SessionSettings(request, time_limit_seconds=time_limit)
    sound = prefs.game.sound_enabled and not args.no_sound

    try:
        results = run_terminal_game(
            settings,
            console,
            lambda: console.input("[bold]> [/]"),
            source=QuestionGenerator(seed=_seed_from(args, prefs)),
            features=prefs.session,
            sound_enabled=sound,
        )
    except GenerationError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 1
    return 0 if results is not None else 1


def _cmd_generate(args: argparse.Namespace) -> int:
    try:
        prefs = _load(args)
        _setup_logging(prefs, verbose=args.verbose)
    except (ConfigurationError, WorkspaceError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    request = _request_from(args, prefs)
    generator = QuestionGenerator(seed=_seed_from(args, prefs))
    questions = generator.generate(request)
    if args.jsonl:
        for question in questions:
            sys.stdout.write(json.dumps(question.to_dict()) + "\n")
        return 0
    render_question_bank(Console(), questions)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    try:
        path = resolve_config_path(explicit_path=args.config)
        written = write_template(path, overwrite=args.force)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        print("Pass --force to overwrite.", file=sys.stderr)
        return 1
    except WorkspaceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    print(f"Created preferences template {written}")
    return 0


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Preferences TOML (defaults to $MATH_GENIUS_CONFIG or the "
        "data home)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )


def _add_request_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--difficulty",
        type=_enum_type(Difficulty),
        help="easy, normal, genius or quantum",
    )
    parser.add_argument(
        "--topic",
        type=_enum_type(Category),
        help="Question category, e.g. addition, division, patterns",
    )
    parser.add_argument(
        "--count", type=int, help="Number of questions (clamped to 1-50)"
    )
    parser.add_argument(
        "--seed", type=int, help="Seed the generator for repeatable questions"
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="math-genius",
        description="Timed multiple-choice arithmetic quizzes",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_play = sub.add_parser("play", help="Play a quiz in the terminal")
    _add_common(sp_play)
    _add_request_options(sp_play)
    sp_play.add_argument(
        "--time-limit",
        type=int,
        help="Seconds per question (clamped to 5-300)",
    )
    sp_play.add_argument(
        "--no-sound",
        action="store_true",
        help="Silence the terminal bell",
    )

    sp_gen = sub.add_parser("generate", help="Print a batch of questions")
    _add_common(sp_gen)
    _add_request_options(sp_gen)
    sp_gen.add_argument(
        "--jsonl",
        action="store_true",
        help="Emit one JSON object per question instead of a table",
    )

    sp_init = sub.add_parser("init", help="Write a preferences template")
    sp_init.add_argument(
        "--config",
        type=Path,
        help="Where to write the template",
    )
    sp_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing preferences file",
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "play":
        code = _cmd_play(args)
    elif args.command == "generate":
        code = _cmd_generate(args)
    elif args.command == "init":
        code = _cmd_init(args)
    else:  # pragma: no cover - fallback guard
        parser.print_help()
        code = 2
    raise SystemExit(code)
