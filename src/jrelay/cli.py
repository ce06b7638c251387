from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter
from judge_relay import ExecutionFailed, ExecutionRequest, ExecutionResult, Judge0Engine, RelaySettings, run_code
from judge_relay.execution.config import LANGUAGE_ALIASES, resolve_language_id
from judge_relay.execution.status import STATUS_DESCRIPTIONS, StatusClass, classify_status, describe_status

_CONSOLE = Console(no_color=False)
_ERR_CONSOLE = Console(stderr=True)

EXIT_OK = 0
EXIT_TERMINAL_FAILURE = 1
EXIT_USAGE = 2
EXIT_TIMED_OUT = 3
EXIT_EXECUTION_FAILED = 4


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m jrelay")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {escape(message)}", border_style="red"))
        self.print_help()
        raise SystemExit(EXIT_USAGE)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for judge-relay.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m jrelay",
        description=(
            "judge-relay CLI\n"
            "Submit source code to a Judge0 engine and wait for the result.\n"
            "Polling stops at the first finished status or when the attempt budget runs out."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m jrelay run --language python --file hello.py\n"
            "  python -m jrelay run --language 62 --file Main.java --stdin-file input.txt\n"
            "  python -m jrelay run --language cpp --code '...' --json\n"
            "  python -m jrelay languages\n"
            "  python -m jrelay statuses\n\n"
            "Connection Examples:\n"
            "  RAPIDAPI_KEY=... python -m jrelay run --language python --file hello.py\n"
            "  python -m jrelay --base-url http://localhost:2358 run --language python --file hello.py\n"
            "  python -m jrelay --config relay.toml run --language python --file hello.py"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--config",
        help=(
            "Path to a relay settings TOML file.\n"
            "Environment variables and flags override file values."
        ),
    )
    parser.add_argument(
        "--base-url",
        help=(
            "Judge0 base URL.\n"
            "Example: --base-url http://localhost:2358"
        ),
    )
    parser.add_argument(
        "--api-key",
        help="RapidAPI key sent as X-RapidAPI-Key (default: $RAPIDAPI_KEY).",
    )
    parser.add_argument(
        "--api-host",
        help="RapidAPI host sent as X-RapidAPI-Host (default: $RAPIDAPI_HOST).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log submission and every poll attempt.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Submit code and wait for the engine result.",
        description=(
            "Submit one program and poll until it finishes.\n"
            "Exit codes: 0 accepted, 1 finished with a failure status,\n"
            "3 still pending when the budget ran out, 4 execution failed."
        ),
        epilog=(
            "Examples:\n"
            "  python -m jrelay run --language python --file hello.py\n"
            "  python -m jrelay run --language java --file Main.java --max-attempts 20"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument(
        "--language",
        "-l",
        required=True,
        help=(
            "Language alias or numeric Judge0 language id.\n"
            f"Aliases: {', '.join(sorted(LANGUAGE_ALIASES))}"
        ),
    )
    source = run_cmd.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", "-f", help="Read source code from a file.")
    source.add_argument("--code", "-c", help="Source code given inline.")
    stdin = run_cmd.add_mutually_exclusive_group()
    stdin.add_argument("--stdin", help="Standard input passed to the program.")
    stdin.add_argument("--stdin-file", help="Read standard input from a file.")
    run_cmd.add_argument(
        "--max-attempts",
        type=int,
        help="Maximum status fetches before giving up (default: from settings).",
    )
    run_cmd.add_argument(
        "--interval-ms",
        type=int,
        help="Delay before each status fetch in milliseconds (default: from settings).",
    )
    run_cmd.add_argument(
        "--json",
        action="store_true",
        help="Print the engine's last status response as JSON.",
    )

    sub.add_parser(
        "languages",
        help="List built-in language aliases.",
        description="Show language aliases accepted by `run --language`.",
        formatter_class=_HELP_FORMATTER,
    )
    sub.add_parser(
        "statuses",
        help="List Judge0 status codes and how they are classified.",
        description=(
            "Show Judge0 status codes.\n"
            "Pending codes keep polling; every other code stops it."
        ),
        formatter_class=_HELP_FORMATTER,
    )

    return parser


def configure_logging(verbose: bool) -> None:
    """Route library logs through Rich on stderr.

    Example:
        ```python
        configure_logging(verbose=True)
        ```
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_ERR_CONSOLE, show_path=False)],
    )


def resolve_settings(args: argparse.Namespace) -> RelaySettings:
    """Resolve settings from config file, environment, then CLI flags.

    Example:
        ```python
        settings = resolve_settings(args)
        ```
    """
    settings = RelaySettings.from_env(config_path=args.config)
    overrides: dict[str, Any] = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.api_key:
        overrides["api_key"] = args.api_key
    if args.api_host:
        overrides["api_host"] = args.api_host
    if getattr(args, "max_attempts", None) is not None:
        overrides["max_attempts"] = args.max_attempts
    if getattr(args, "interval_ms", None) is not None:
        overrides["interval_ms"] = args.interval_ms
    return replace(settings, **overrides) if overrides else settings


def build_request(args: argparse.Namespace) -> ExecutionRequest:
    """Build an ExecutionRequest from `run` arguments.

    Example:
        ```python
        request = build_request(args)
        ```
    """
    if args.file:
        source_code = Path(args.file).read_text(encoding="utf-8")
    else:
        source_code = args.code
    if not source_code.strip():
        raise ValueError("Source code is empty")
    if args.stdin_file:
        stdin = Path(args.stdin_file).read_text(encoding="utf-8")
    else:
        stdin = args.stdin or ""
    return ExecutionRequest(
        source_code=source_code,
        language_id=resolve_language_id(args.language),
        stdin=stdin,
    )


def _exit_code(result: ExecutionResult) -> int:
    """Map an execution result to the CLI exit code.

    Example:
        ```python
        code = _exit_code(result)
        ```
    """
    if result.timed_out:
        return EXIT_TIMED_OUT
    if classify_status(result.snapshot.status_code) is StatusClass.TERMINAL_SUCCESS:
        return EXIT_OK
    return EXIT_TERMINAL_FAILURE


def _print_result(result: ExecutionResult) -> None:
    """Render an execution result with Rich panels.

    Example:
        ```python
        _print_result(result)
        ```
    """
    snap = result.snapshot
    status_class = classify_status(snap.status_code)
    style = {
        StatusClass.TERMINAL_SUCCESS: "green",
        StatusClass.TERMINAL_FAILURE: "red",
        StatusClass.PENDING: "yellow",
    }[status_class]

    table = Table(title="Execution Result", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", f"[{style}]{escape(snap.status_description or describe_status(snap.status_code))}[/{style}]")
    table.add_row("Status code", str(snap.status_code))
    table.add_row("Polls", str(result.attempts))
    table.add_row("Time (s)", "-" if snap.time is None else str(snap.time))
    table.add_row("Memory (KB)", "-" if snap.memory is None else str(snap.memory))
    _CONSOLE.print(table)

    if result.timed_out:
        _CONSOLE.print(
            Panel.fit(
                f"Job still pending after {result.attempts} poll(s); showing the last status.",
                style="bold yellow",
            )
        )
    for title, text, border in (
        ("Compile Output", snap.compile_output, "red"),
        ("stdout", snap.stdout, "green"),
        ("stderr", snap.stderr, "red"),
    ):
        if text:
            _CONSOLE.print(Panel(Text(text.rstrip("\n")), title=title, border_style=border))


def _print_languages() -> None:
    """Render the built-in language alias table.

    Example:
        ```python
        _print_languages()
        ```
    """
    table = Table(title="Language Aliases")
    table.add_column("Alias", style="cyan")
    table.add_column("Judge0 ID", style="magenta")
    for alias, language_id in sorted(LANGUAGE_ALIASES.items()):
        table.add_row(alias, str(language_id))
    _CONSOLE.print(table)


def _print_statuses() -> None:
    """Render Judge0 status codes with their classification.

    Example:
        ```python
        _print_statuses()
        ```
    """
    table = Table(title="Judge0 Statuses")
    table.add_column("ID", style="cyan")
    table.add_column("Description", style="magenta")
    table.add_column("Class")
    for status_id, description in sorted(STATUS_DESCRIPTIONS.items()):
        table.add_row(str(status_id), description, classify_status(status_id).value)
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `jrelay` CLI command handler.

    Example:
        ```python
        code = main(["run", "--language", "python", "--code", "print(1)"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.verbose)

    if args.command == "languages":
        _print_languages()
        return EXIT_OK
    if args.command == "statuses":
        _print_statuses()
        return EXIT_OK
    if args.command == "run":
        try:
            settings = resolve_settings(args)
            request = build_request(args)
            engine = settings.build_engine(Judge0Engine)
        except (OSError, ValueError) as exc:
            _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {escape(str(exc))}", border_style="red"))
            return EXIT_USAGE
        try:
            result = asyncio.run(run_code(request, engine, settings.budget()))
        except ExecutionFailed as exc:
            cause = exc.__cause__ or exc
            if args.json:
                _CONSOLE.print_json(data={"message": str(exc)})
            else:
                _CONSOLE.print(Panel.fit(f"{exc}: {escape(str(cause))}", title="Execution Failed", style="bold red"))
            return EXIT_EXECUTION_FAILED
        if args.json:
            _CONSOLE.print_json(data=result.snapshot.raw)
        else:
            _print_result(result)
        return _exit_code(result)

    parser.error("Unhandled command")
    return EXIT_USAGE
