"""Interactive search shell over static JSON snapshots of organizations, tickets and users.

Data files are loaded and indexed once at startup; the shell then answers
``search`` and ``fields`` commands against the frozen index.
"""

from __future__ import annotations

import argparse
from collections.abc import Mapping, Sequence
from importlib.metadata import PackageNotFoundError, version
import logging
from pathlib import Path
import shlex
import time
from typing import Any

import orjson
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from zd_search.config import Settings
from zd_search.domain.commands import OBJECT_TYPES, parse_fields_command, parse_search_command
from zd_search.errors import CommandParseError, RecordLoadError, UnsupportedValueTypeError
from zd_search.loader import index_records, load_records
from zd_search.observability.logging import configure_logging
from zd_search.search.index import SearchIndex
from zd_search.search.tokenizer import Tokenizer


logger = logging.getLogger(__name__)

COMMANDS = ("fields", "search", "exit", "help")

_TYPES = "|".join(OBJECT_TYPES)
INTERACTIVE_HELP = f"""\
To discover what fields are available to query
    > fields {{{_TYPES}}}
To query on a particular object type/field pair
    > search {{{_TYPES}}}.FIELD SEARCH_TERM
    (wrap the term in double quotes to keep spaces; "" finds empty fields)
To exit
    > exit
    or
    > ^D
To see this help again
    > help
"""

_MALFORMED_HINT = "Malformed command (try `help` for usage instructions)"


def _package_version() -> str:
    try:
        return version("zd-search")
    except PackageNotFoundError:
        return "unknown"


def split_command_line(line: str) -> list[str]:
    """Split a shell line on whitespace, honouring double quotes.

    Apostrophes are ordinary word characters so contractions survive.

    Raises:
        ValueError: a double quote is left open.
    """
    lexer = shlex.shlex(line, posix=True)
    lexer.whitespace_split = True
    lexer.quotes = '"'
    lexer.commenters = ""
    return list(lexer)


def render_search_results(console: Console, results: Sequence[Mapping[str, Any]]) -> None:
    for row in results:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Field name", no_wrap=True)
        table.add_column("Value")
        for field_name in sorted(row):
            value = orjson.dumps(row[field_name], default=str).decode("utf-8")
            table.add_row(Text(field_name), Text(value))
        console.print(table)
    console.print(f"(found {len(results)} result(s))", markup=False, highlight=False)


def render_fields(console: Console, fields: Sequence[str], columns: int = 3) -> None:
    table = Table(show_header=False, box=None, pad_edge=False)
    for _ in range(columns):
        table.add_column()
    for start in range(0, len(fields), columns):
        chunk = list(fields[start : start + columns])
        chunk += [""] * (columns - len(chunk))
        table.add_row(*(Text(name) for name in chunk))
    console.print(table)


class CommandShell:
    """Dispatches shell lines to commands and renders their output."""

    def __init__(self, index: SearchIndex, console: Console, *, object_types: Sequence[str] = OBJECT_TYPES) -> None:
        self.index = index
        self.console = console
        self.object_types = tuple(object_types)

    def handle_line(self, line: str) -> bool:
        """Run one line of input. Returns False when the shell should exit."""
        try:
            tokens = split_command_line(line)
        except ValueError as exc:
            logger.debug("Could not split %r: %s", line, exc)
            self._print(_MALFORMED_HINT)
            return True

        if not tokens:
            return True

        command = tokens[0]
        if command == "exit":
            return False
        if command == "help":
            self._print(INTERACTIVE_HELP, end="")
        elif command == "search":
            self.run_search(tokens)
        elif command == "fields":
            self.run_fields(tokens)
        else:
            self._print(f"Unknown command {command}. Try `help` for help.")
        return True

    def run_search(self, tokens: Sequence[str]) -> None:
        try:
            command = parse_search_command(tokens, self.object_types)
        except CommandParseError as exc:
            logger.debug(
                "Rejected search command %r: %s",
                tokens,
                exc.code.value,
                extra={"command": "search", "error_code": exc.code.value},
            )
            self._print(f"{exc.code.message}. {_MALFORMED_HINT}")
            return
        try:
            results = command.execute(self.index)
        except UnsupportedValueTypeError as exc:
            self._print(f"Cannot search: {exc}")
            return
        render_search_results(self.console, results)

    def run_fields(self, tokens: Sequence[str]) -> None:
        try:
            command = parse_fields_command(tokens, self.object_types)
        except CommandParseError as exc:
            logger.debug(
                "Rejected fields command %r: %s",
                tokens,
                exc.code.value,
                extra={"command": "fields", "error_code": exc.code.value},
            )
            self._print(f"{exc.code.message}. {_MALFORMED_HINT}")
            return
        render_fields(self.console, command.execute(self.index))

    def run(self, session: PromptSession, prompt: str = "zd-search> ") -> None:
        """Read lines until ``exit`` or end of input. Ctrl-C discards the current line."""
        while True:
            try:
                line = session.prompt(prompt)
            except KeyboardInterrupt:
                continue
            except EOFError:
                self._print("")
                break
            if not self.handle_line(line):
                break

    def _print(self, message: str, end: str = "\n") -> None:
        self.console.print(message, end=end, markup=False, highlight=False)


def build_index(sources: Mapping[str, Sequence[Path]], tokenizer: Tokenizer, console: Console) -> SearchIndex:
    """Load, index and balance the data, reporting progress on ``console``."""
    started = time.perf_counter()
    console.print("Loading data...", markup=False)
    records = load_records(sources)

    console.print("Indexing data...", markup=False)
    builder = index_records(records, tokenizer)

    console.print("Optimising index...", markup=False)
    index = builder.build()

    elapsed_ms = round((time.perf_counter() - started) * 1000)
    console.print(f"Done (in {elapsed_ms} ms).", markup=False)
    logger.info("Index ready in %d ms", elapsed_ms, extra={"elapsed_ms": elapsed_ms, "records": index.record_count})
    for partition, stats in index.stats().items():
        logger.info(
            "Partition %s: %d keys, height %d",
            partition,
            stats["keys"],
            stats["height"],
            extra={"partition": partition, **stats},
        )
    return index


def build_argument_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zd-search",
        description=(
            "zd-search queries static JSON snapshots of organization, ticket and user data. "
            "Data files are read on startup and an index is precomputed; the interactive "
            "search shell then queries this indexed data."
        ),
        epilog=f"DATA_DIR is {settings.data_dir} (the bundled sample data unless ZD_SEARCH_DATA_DIR is set).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")
    parser.add_argument(
        "--organization-data",
        type=Path,
        nargs="+",
        metavar="PATH",
        help="Path(s) to organization JSON (default: DATA_DIR/organizations.json)",
    )
    parser.add_argument(
        "--ticket-data",
        type=Path,
        nargs="+",
        metavar="PATH",
        help="Path(s) to ticket JSON (default: DATA_DIR/tickets.json)",
    )
    parser.add_argument(
        "--user-data",
        type=Path,
        nargs="+",
        metavar="PATH",
        help="Path(s) to user JSON (default: DATA_DIR/users.json)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["critical", "error", "warning", "info", "debug"],
        help=f"Logging level (default: {settings.log_level})",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=settings.log_json,
        help="Emit structured JSON logs",
    )
    return parser


def _resolve_sources(args: argparse.Namespace, settings: Settings) -> dict[str, list[Path]]:
    sources = settings.data_sources()
    overrides = {
        "organization": args.organization_data,
        "ticket": args.ticket_data,
        "user": args.user_data,
    }
    for object_type, paths in overrides.items():
        if paths:
            sources[object_type] = list(paths)
    return sources


def main(argv: Sequence[str] | None = None, *, console: Console | None = None) -> int:
    console = console or Console()
    try:
        settings = Settings()
    except ValidationError as exc:
        console.print(f"Error: invalid ZD_SEARCH_* configuration\n{exc}", markup=False, highlight=False)
        return 1

    args = build_argument_parser(settings).parse_args(argv)
    configure_logging(args.log_level, args.log_json)

    sources = _resolve_sources(args, settings)
    for object_type, paths in sources.items():
        console.print(f"Using {object_type} data from {', '.join(str(path) for path in paths)}", markup=False)
    console.print()

    try:
        index = build_index(sources, settings.build_tokenizer(), console)
    except (RecordLoadError, UnsupportedValueTypeError) as exc:
        logger.debug("Startup failed", exc_info=True, extra={"error": type(exc).__name__})
        console.print(f"Error: {exc}", markup=False, highlight=False)
        return 1

    console.print()
    console.print("Now dropping to the search shell.", markup=False)
    console.print(INTERACTIVE_HELP, end="", markup=False, highlight=False)

    session: PromptSession = PromptSession(completer=WordCompleter(list(COMMANDS)), history=InMemoryHistory())
    CommandShell(index, console).run(session, settings.prompt)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
