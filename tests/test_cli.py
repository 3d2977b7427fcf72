import json

import pytest

from math_genius import cli
from math_genius.quiz import _main as quiz_main
from math_genius.quiz.models import SessionSettings
from math_genius.quiz.session import QuizResults


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "math-genius"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


@pytest.mark.parametrize("argv", [["version"], ["--version"], ["-V"]])
def test_version_variants(argv, capsys):
    assert cli.main(argv) == 0
    assert capsys.readouterr().out.strip() == "0.0-test"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: math-genius" in captured.out
    assert "Available commands:" in captured.out


def test_help_flag_and_command_show_usage(capsys):
    assert cli.main(["--help"]) == 0
    assert cli.main(["help"]) == 0
    assert capsys.readouterr().out.count("Usage: math-genius") == 2


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    for name in ("play", "generate", "init"):
        assert name in captured.out
    assert "(interactive)" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "generate"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Run `math-genius generate --help`" in captured.out


@pytest.mark.parametrize("argv", [["help", "nope"], ["bogus"]])
def test_unknown_command_errors(argv, capsys):
    code = cli.main(argv)
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err
    assert "Available commands:" in captured.err


def test_generate_jsonl_is_seeded(data_home, capsys):
    argv = [
        "generate",
        "--jsonl",
        "--seed",
        "3",
        "--count",
        "4",
        "--topic",
        "division",
        "--difficulty",
        "genius",
    ]

    assert cli.main(argv) == 0
    first = capsys.readouterr().out.strip().splitlines()
    assert cli.main(argv) == 0
    second = capsys.readouterr().out.strip().splitlines()

    assert first == second
    rows = [json.loads(line) for line in first]
    assert len(rows) == 4
    assert {row["category"] for row in rows} == {"division"}
    assert {row["difficulty"] for row in rows} == {"genius"}
    assert (data_home / "logs" / "math_genius.log").exists()


def test_generate_table_uses_preferences(
    tmp_path, data_home, capsys, monkeypatch
):
    monkeypatch.setenv("COLUMNS", "200")
    config = tmp_path / "prefs.toml"
    config.write_text(
        '[game]\ncategory = "patterns"\nquestion_count = 2\n',
        encoding="utf-8",
    )

    code = cli.main(["generate", "--config", str(config), "--seed", "1"])

    assert code == 0
    assert "What comes next?" in capsys.readouterr().out


def test_generate_rejects_bad_topic(data_home, capsys):
    code = cli.main(["generate", "--topic", "astrology"])

    assert code == 2
    assert "Unknown category" in capsys.readouterr().err


def test_generate_reports_bad_preferences(tmp_path, data_home, capsys):
    config = tmp_path / "prefs.toml"
    config.write_text("[game]\nvolume = 11\n", encoding="utf-8")

    code = cli.main(["generate", "--config", str(config)])

    assert code == 2
    assert "Unknown configuration key" in capsys.readouterr().err


def test_init_writes_template_once(data_home, capsys):
    assert cli.main(["init"]) == 0
    target = data_home / "config" / "preferences.toml"
    assert target.exists()
    assert str(target) in capsys.readouterr().out

    assert cli.main(["init"]) == 1
    assert "--force" in capsys.readouterr().err
    assert cli.main(["init", "--force"]) == 0


def test_play_passes_preferences_to_host(tmp_path, data_home, monkeypatch):
    config = tmp_path / "prefs.toml"
    config.write_text(
        "[game]\n"
        'difficulty = "easy"\n'
        "time_limit_seconds = 20\n"
        "sound_enabled = true\n",
        encoding="utf-8",
    )
    captured = {}

    def fake_run(settings, console, input_provider, **kwargs):
        captured["settings"] = settings
        captured.update(kwargs)
        return QuizResults(
            total_questions=1,
            score=1,
            accuracy=100.0,
            best_streak=1,
            answer_history=(True,),
            average_response_time_ms=None,
        )

    monkeypatch.setattr(quiz_main, "run_terminal_game", fake_run)

    code = cli.main(
        ["play", "--config", str(config), "--count", "3", "--no-sound"]
    )

    assert code == 0
    settings: SessionSettings = captured["settings"]
    assert settings.request.difficulty.value == "easy"
    assert settings.request.count == 3
    assert settings.time_limit_seconds == 20
    assert captured["sound_enabled"] is False


def test_play_abandoned_session_exits_nonzero(data_home, monkeypatch):
    monkeypatch.setattr(
        quiz_main, "run_terminal_game", lambda *args, **kwargs: None
    )

    assert cli.main(["play"]) == 1
