"""Main CLI entry point for the lxquery command-line tool.

Runs selectors against XML and HTML files and prints the matches as
markup, text, attribute values, JSON or counts.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from lxquery import __version__
from lxquery.api.factory import query
from lxquery.shared.config import ConfigError
from lxquery.shared.errors import LxqueryError, SelectorError
from lxquery.shared.logging import get_logger

MARKUP_SUFFIXES = frozenset({".xml", ".xhtml", ".svg", ".html", ".htm"})
OUTPUT_FORMATS = ("xml", "html", "text", "json")


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.output_format = "xml"
        self.options: Dict[str, Any] = {}

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file may hold ``output_format`` and an ``options`` object with
        query options such as ``replace_entities``.

        Raises:
            ConfigError: If the file cannot be read or is not valid JSON
        """
        config = cls()
        try:
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")
        config.output_format = data.get("output_format", config.output_format)
        config.options.update(data.get("options", {}))
        return config


class QueryProcessor:
    """Runs one selector over many files."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path, selector: str,
                            attribute: Optional[str] = None) -> Dict[str, Any]:
        """Query a single file and describe the matches."""
        try:
            matches = query(file_path, selector, **self.config.options)
        except (LxqueryError, SelectorError) as e:
            self.logger.warning("Failed to query file",
                                extra={"file": str(file_path), "error": str(e)})
            return {"file": str(file_path), "success": False, "error": str(e), "count": 0}

        entries = []
        for match in matches:
            if attribute is not None:
                value = match.attr(attribute)
            elif self.config.output_format == "text":
                value = match.text()
            elif self.config.output_format == "html":
                value = match.html()
            else:
                value = match.xml(omit_declaration=True)
            if value is not None:
                entries.append(value)
        return {
            "file": str(file_path),
            "success": True,
            "count": len(matches),
            "matches": entries,
        }

    def find_markup_files(self, path: Path, recursive: bool = True) -> Iterator[Path]:
        """Find XML and HTML files in path."""
        if path.is_file():
            yield path
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            for candidate in sorted(path.glob(pattern)):
                if candidate.is_file() and candidate.suffix.lower() in MARKUP_SUFFIXES:
                    yield candidate

    def batch_process(self, paths: List[Path], selector: str, attribute: Optional[str] = None,
                      recursive: bool = True) -> List[Dict[str, Any]]:
        files = []
        for path in paths:
            files.extend(self.find_markup_files(path, recursive))
        return [self.process_single_file(path, selector, attribute) for path in files]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="lxquery",
        description="Run CSS selectors against XML and HTML documents"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (("select", "Print matching nodes"),
                            ("count", "Count matching nodes")):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("selector", help="CSS selector")
        command.add_argument(
            "paths",
            nargs="+",
            type=Path,
            help="Files or directories to query"
        )
        command.add_argument(
            "--recursive", "-r",
            action="store_true",
            help="Recursively process directories"
        )
        command.add_argument(
            "--config", "-c",
            type=Path,
            help="Configuration file path"
        )
        command.add_argument(
            "--html",
            action="store_true",
            help="Parse every file as HTML"
        )
        command.add_argument(
            "--ignore-warnings",
            action="store_true",
            help="Recover from malformed markup instead of failing"
        )
        if name == "select":
            command.add_argument(
                "--format", "-f",
                choices=OUTPUT_FORMATS,
                help="Output format (default: xml)"
            )
            command.add_argument(
                "--attr", "-a",
                help="Print this attribute of each match instead of markup"
            )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format query results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    lines = []
    for result in results:
        if not result["success"]:
            continue
        if len(results) > 1:
            lines.append(f"== {result['file']} ({result['count']} matches)")
        lines.extend(str(value) for value in result.get("matches", []))
    return "\n".join(lines)


def _load_config(args: argparse.Namespace) -> CLIConfig:
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
    if args.html:
        config.options["content_type"] = "html"
    if args.ignore_warnings:
        config.options["ignore_parser_warnings"] = True
    return config


def _report_failures(results: List[Dict[str, Any]]) -> int:
    failed = [result for result in results if not result["success"]]
    for result in failed:
        print(f"Error: {result['file']}: {result['error']}", file=sys.stderr)
    return 1 if failed or not results else 0


def cmd_select(args: argparse.Namespace) -> int:
    """Handle select command."""
    config = _load_config(args)
    if args.format:
        config.output_format = args.format

    processor = QueryProcessor(config)
    results = processor.batch_process(args.paths, args.selector, args.attr, args.recursive)
    output = format_results(results, config.output_format)
    if output:
        print(output)
    return _report_failures(results)


def cmd_count(args: argparse.Namespace) -> int:
    """Handle count command."""
    config = _load_config(args)
    processor = QueryProcessor(config)
    results = processor.batch_process(args.paths, args.selector, recursive=args.recursive)
    for result in results:
        if result["success"]:
            print(f"{result['file']}: {result['count']}" if len(results) > 1 else result["count"])
    return _report_failures(results)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "select":
            return cmd_select(args)
        elif args.command == "count":
            return cmd_count(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
