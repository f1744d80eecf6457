from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.logging import RichHandler

from . import __version__
from .configuration import ClientSettings, detect_language, load_settings, validate_endpoint
from .context import (
    CompletionOptions,
    CompletionRequestBody,
    RelatedFile,
    build_completion_metadata,
)
from .editor import CursorPosition, TextBuffer
from .errors import ConfigurationError, InlineCompleteError
from .exit_codes import ExitCode
from .orchestration import handle_domain_error, run_completion
from .utils import read_source_text

APP_NAME = "inlinecomplete"
_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

app = typer.Typer(
    name=APP_NAME,
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

_FILE_OPTION = typer.Option(
    ...,
    "--file",
    "-f",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
    help="Path to the source file acting as the editor buffer.",
)
_LINE_OPTION = typer.Option(..., "--line", "-l", min=1, help="1-based cursor line.")
_COLUMN_OPTION = typer.Option(..., "--column", "-c", min=1, help="1-based cursor column.")
_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="YAML configuration file with endpoint and context settings.",
)
_RELATED_OPTION = typer.Option(
    [],
    "--related",
    "-r",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
    help="Related source files to include as context (pass multiple times).",
)
_LANGUAGE_OPTION = typer.Option(
    None,
    "--language",
    help="Language identifier; detected from the file suffix when omitted.",
)
_TECHNOLOGY_OPTION = typer.Option(
    [],
    "--technology",
    "-t",
    help="Technology tag sent with the request (pass multiple times).",
)
_MAX_CONTEXT_LINES_OPTION = typer.Option(
    None,
    "--max-context-lines",
    help="Total line budget shared by the context fragments.",
)


def configure_logging(*, quiet: bool = False) -> None:
    """Initialise application-wide logging."""

    level = logging.WARNING if quiet else logging.INFO
    root = logging.getLogger()

    if getattr(configure_logging, "_configured", False):
        root.setLevel(level)
        for handler in root.handlers:
            handler.setLevel(level)
        configure_logging._level = level
        return

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        markup=False,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    configure_logging._configured = True
    configure_logging._level = level


def _is_quiet_mode() -> bool:
    return getattr(configure_logging, "_level", logging.INFO) == logging.WARNING


def _load_related_files(paths: list[Path]) -> tuple[RelatedFile, ...]:
    related: list[RelatedFile] = []
    for path in paths:
        content = read_source_text(path, "related file")
        related.append(RelatedFile(path=str(path), content=content))
    return tuple(related)


def _prepare_request(
    *,
    file: Path,
    line: int,
    column: int,
    settings: ClientSettings,
    related: list[Path],
    language: str | None,
    technologies: list[str],
    max_context_lines: int | None,
) -> tuple[CursorPosition, TextBuffer, CompletionOptions]:
    """Read the buffer and related files and resolve the builder options."""

    text = read_source_text(file, "source file")
    options = CompletionOptions(
        filename=file.name,
        language=language or settings.language or detect_language(file.name),
        technologies=tuple(technologies) or settings.technologies,
        related_files=_load_related_files(related) or None,
        max_context_lines=(
            max_context_lines if max_context_lines is not None else settings.max_context_lines
        ),
    )
    return CursorPosition(line_number=line, column=column), TextBuffer(text), options


def _exit_with_error(error: InlineCompleteError) -> NoReturn:
    outcome = handle_domain_error(error)
    if outcome.message:
        typer.echo(outcome.message, err=True)
    raise typer.Exit(code=int(outcome.exit_code)) from error


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Reduce log output to warnings and errors.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the inlinecomplete version and exit.",
    ),
) -> None:
    """Configure logging and handle global options."""

    configure_logging(quiet=quiet)

    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ExitCode.SUCCESS))

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=int(ExitCode.SUCCESS))


@app.command("complete")
def complete(
    file: Path = _FILE_OPTION,
    line: int = _LINE_OPTION,
    column: int = _COLUMN_OPTION,
    endpoint: Optional[str] = typer.Option(
        None,
        "--endpoint",
        "-e",
        help="Completion endpoint URL; overrides configuration and environment.",
    ),
    config: Optional[Path] = _CONFIG_OPTION,
    related: list[Path] = _RELATED_OPTION,
    language: Optional[str] = _LANGUAGE_OPTION,
    technology: list[str] = _TECHNOLOGY_OPTION,
    max_context_lines: Optional[int] = _MAX_CONTEXT_LINES_OPTION,
) -> None:
    """Request an inline completion at the given cursor position."""

    try:
        settings = load_settings(config)
        if endpoint:
            resolved_endpoint = validate_endpoint(endpoint, origin="--endpoint")
        else:
            resolved_endpoint = settings.require_endpoint()
        position, buffer, options = _prepare_request(
            file=file,
            line=line,
            column=column,
            settings=settings,
            related=related,
            language=language,
            technologies=technology,
            max_context_lines=max_context_lines,
        )
    except ConfigurationError as exc:
        _exit_with_error(exc)

    outcome = run_completion(
        endpoint=resolved_endpoint,
        position=position,
        model=buffer,
        options=options,
        timeout_seconds=settings.timeout_seconds,
    )

    if outcome.completion is not None:
        typer.echo(outcome.completion)
    elif outcome.status == "completed" and not _is_quiet_mode():
        typer.echo("No completion suggested.")
    elif outcome.status == "failed" and outcome.message:
        typer.echo(outcome.message, err=True)

    raise typer.Exit(code=int(outcome.exit_code))


@app.command("context")
def context(
    file: Path = _FILE_OPTION,
    line: int = _LINE_OPTION,
    column: int = _COLUMN_OPTION,
    config: Optional[Path] = _CONFIG_OPTION,
    related: list[Path] = _RELATED_OPTION,
    language: Optional[str] = _LANGUAGE_OPTION,
    technology: list[str] = _TECHNOLOGY_OPTION,
    max_context_lines: Optional[int] = _MAX_CONTEXT_LINES_OPTION,
) -> None:
    """Print the request body that would be sent, without contacting the endpoint."""

    try:
        settings = load_settings(config)
        position, buffer, options = _prepare_request(
            file=file,
            line=line,
            column=column,
            settings=settings,
            related=related,
            language=language,
            technologies=technology,
            max_context_lines=max_context_lines,
        )
    except ConfigurationError as exc:
        _exit_with_error(exc)

    metadata = build_completion_metadata(position, buffer, options)
    body = CompletionRequestBody(completion_metadata=metadata)
    typer.echo(json.dumps(body.to_payload(), indent=2, ensure_ascii=False))
    raise typer.Exit(code=int(ExitCode.SUCCESS))


def entrypoint() -> None:
    """Execute the Typer application."""

    app()


__all__ = ["app", "entrypoint", "configure_logging", "ExitCode"]
