from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from inlinecomplete import __version__
from inlinecomplete.cli import ExitCode, app, configure_logging
from inlinecomplete.configuration import ENDPOINT_ENV_VAR
from inlinecomplete.orchestration import CompletionOutcome

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging_state() -> None:
    """Ensure each test runs with a clean logging configuration."""

    configure_logging._configured = False  # type: ignore[attr-defined]
    configure_logging._level = logging.INFO  # type: ignore[attr-defined]
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    yield
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    configure_logging._configured = False  # type: ignore[attr-defined]
    configure_logging._level = logging.INFO  # type: ignore[attr-defined]


@pytest.fixture(autouse=True)
def clear_endpoint_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ENDPOINT_ENV_VAR, raising=False)


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "service.py"
    path.write_text("\n".join(f"line {index}" for index in range(1, 41)), encoding="utf-8")
    return path


def _normalize(output: str) -> str:
    """Collapse whitespace to simplify assertions across Rich formatting."""

    return " ".join(output.split())


def _context_payload(output: str) -> dict:
    return json.loads(output[output.index("{") :])


def test_root_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == int(ExitCode.SUCCESS)
    normalized = _normalize(result.output)
    assert "complete" in normalized
    assert "context" in normalized
    assert "--quiet" in normalized


def test_version_flag_prints_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert __version__ in result.output


def test_context_prints_request_body(source_file: Path) -> None:
    result = runner.invoke(
        app,
        [
            "--quiet",
            "context",
            "--file",
            str(source_file),
            "--line",
            "20",
            "--column",
            "1",
            "--max-context-lines",
            "10",
            "-t",
            "flask",
        ],
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    metadata = _context_payload(result.output)["completionMetadata"]
    assert metadata["filename"] == "service.py"
    assert metadata["language"] == "python"
    assert metadata["technologies"] == ["flask"]
    assert metadata["cursorPosition"] == {"lineNumber": 20, "column": 1}
    assert metadata["textBeforeCursor"] == "line 16\nline 17\nline 18\nline 19\n"
    assert metadata["textAfterCursor"] == "line 20\nline 21\nline 22\nline 23\nline 24"


def test_context_includes_related_files(source_file: Path, tmp_path: Path) -> None:
    related = tmp_path / "helpers.py"
    related.write_text("\n".join(f"helper {index}" for index in range(1, 11)), encoding="utf-8")
    config = tmp_path / "settings.yaml"
    config.write_text("max_context_lines: 9\nlanguage: python3\n", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "--quiet",
            "context",
            "-f",
            str(source_file),
            "-l",
            "1",
            "-c",
            "1",
            "--config",
            str(config),
            "--related",
            str(related),
        ],
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    metadata = _context_payload(result.output)["completionMetadata"]
    assert metadata["language"] == "python3"
    assert metadata["relatedFiles"] == [
        {"path": str(related), "content": "helper 1\nhelper 2\nhelper 3"}
    ]
    assert metadata["textAfterCursor"] == "line 1\nline 2\nline 3"


def test_context_rejects_invalid_config(source_file: Path, tmp_path: Path) -> None:
    config = tmp_path / "settings.yaml"
    config.write_text("timeout_seconds: -1\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["context", "-f", str(source_file), "-l", "1", "-c", "1", "--config", str(config)],
    )

    assert result.exit_code == int(ExitCode.INVALID_INPUT)


def test_complete_requires_an_endpoint(source_file: Path) -> None:
    result = runner.invoke(app, ["complete", "-f", str(source_file), "-l", "1", "-c", "1"])

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "No completion endpoint is configured." in result.output


def test_complete_prints_completion(
    monkeypatch: pytest.MonkeyPatch, source_file: Path
) -> None:
    recorded: dict[str, object] = {}

    def _fake_run_completion(**kwargs: object) -> CompletionOutcome:
        recorded.update(kwargs)
        return CompletionOutcome(
            status="completed",
            exit_code=ExitCode.SUCCESS,
            completion="    return 42",
        )

    monkeypatch.setattr("inlinecomplete.cli.run_completion", _fake_run_completion)
    monkeypatch.setenv(ENDPOINT_ENV_VAR, "http://localhost:9000/complete")

    result = runner.invoke(
        app,
        ["--quiet", "complete", "-f", str(source_file), "-l", "3", "-c", "2"],
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert "    return 42" in result.output
    assert recorded["endpoint"] == "http://localhost:9000/complete"
    assert recorded["timeout_seconds"] == 10.0
    options = recorded["options"]
    assert options.filename == "service.py"  # type: ignore[attr-defined]
    assert options.max_context_lines == 60  # type: ignore[attr-defined]


def test_complete_endpoint_option_wins(
    monkeypatch: pytest.MonkeyPatch, source_file: Path
) -> None:
    recorded: dict[str, object] = {}

    def _fake_run_completion(**kwargs: object) -> CompletionOutcome:
        recorded.update(kwargs)
        return CompletionOutcome(status="completed", exit_code=ExitCode.SUCCESS)

    monkeypatch.setattr("inlinecomplete.cli.run_completion", _fake_run_completion)
    monkeypatch.setenv(ENDPOINT_ENV_VAR, "http://env.example.test")

    result = runner.invoke(
        app,
        [
            "complete",
            "-f",
            str(source_file),
            "-l",
            "1",
            "-c",
            "1",
            "--endpoint",
            "http://cli.example.test",
        ],
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert recorded["endpoint"] == "http://cli.example.test"
    assert "No completion suggested." in result.output


@pytest.mark.parametrize(
    "exit_code",
    [ExitCode.NETWORK_ERROR, ExitCode.SERVER_ERROR, ExitCode.MALFORMED_RESPONSE],
)
def test_complete_propagates_failure_exit_codes(
    monkeypatch: pytest.MonkeyPatch, source_file: Path, exit_code: ExitCode
) -> None:
    def _fake_run_completion(**kwargs: object) -> CompletionOutcome:
        return CompletionOutcome(
            status="failed",
            exit_code=exit_code,
            message="Completion endpoint unavailable",
            remediation="Retry later",
        )

    monkeypatch.setattr("inlinecomplete.cli.run_completion", _fake_run_completion)

    result = runner.invoke(
        app,
        ["complete", "-f", str(source_file), "-l", "1", "-c", "1", "-e", "http://x.test"],
    )

    assert result.exit_code == int(exit_code)
    assert "Completion endpoint unavailable" in _normalize(result.output)


def test_quiet_flag_sets_warning_level(source_file: Path) -> None:
    result = runner.invoke(
        app, ["--quiet", "context", "-f", str(source_file), "-l", "1", "-c", "1"]
    )

    assert result.exit_code == int(ExitCode.SUCCESS)
    assert getattr(configure_logging, "_level", logging.INFO) == logging.WARNING


def test_complete_rejects_malformed_endpoint_option(
    monkeypatch: pytest.MonkeyPatch, source_file: Path
) -> None:
    def _fail_run_completion(**kwargs: object) -> CompletionOutcome:
        raise AssertionError("no request should be dispatched")

    monkeypatch.setattr("inlinecomplete.cli.run_completion", _fail_run_completion)

    result = runner.invoke(
        app,
        ["complete", "-f", str(source_file), "-l", "1", "-c", "1", "-e", "http://[::1/complete"],
    )

    assert result.exit_code == int(ExitCode.INVALID_INPUT)
    assert "is not a valid URL" in result.output
