"""Unified `math-genius` entry point."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import metadata
from typing import Callable, Mapping, Optional, Sequence

from .quiz import _main as quiz_main


CommandHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class CommandSpec:
    """Represents a math-genius subcommand."""

    name: str
    summary: str
    handler: CommandHandler
    interactive: bool = False


def _quiz_command(name: str) -> CommandHandler:
    return lambda argv: _run_quiz_main([name, *argv])


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="play",
        summary="Play a timed quiz in the terminal.",
        handler=_quiz_command("play"),
        interactive=True,
    ),
    CommandSpec(
        name="generate",
        summary="Print a batch of generated questions.",
        handler=_quiz_command("generate"),
    ),
    CommandSpec(
        name="init",
        summary="Write a preferences template into the data home.",
        handler=_quiz_command("init"),
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return a formatted command table for help output."""

    width = max(len(spec.name) for spec in _COMMAND_SPECS)
    lines = ["Available commands:"]
    for spec in _COMMAND_SPECS:
        suffix = " (interactive)" if spec.interactive else ""
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}{suffix}")
    return "\n".join(lines)


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: math-genius <command> [args...]",
            "Run `math-genius list` for commands or "
            "`math-genius help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _print(
    text: str, *, stream: Optional[Callable[[str], None]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _print_unknown(command: str) -> int:
    _print(f"Unknown command '{command}'.", stream=sys.stderr.write)
    _print(format_command_table(), stream=sys.stderr.write)
    return 2


def _handle_version() -> int:
    try:
        version = metadata.version("math-genius")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _print_unknown(argv[0])
    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `math-genius {spec.name} --help` for command options.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        _print(format_usage())
        return 2

    head, *tail = args
    if head in ("-h", "--help"):
        _print(format_usage())
        return 0
    if head in ("-V", "--version", "version"):
        return _handle_version()
    if head == "list":
        _print(format_command_table())
        return 0
    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec is None:
        return _print_unknown(head)
    return spec.handler(tail)


def _run_quiz_main(argv: Sequence[str]) -> int:
    try:
        quiz_main.main(list(argv))
    except SystemExit as exc:
        return _exit_code(exc)
    return 0


def _exit_code(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _print(str(code), stream=sys.stderr.write)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
