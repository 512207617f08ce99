"""Main CLI entry point for the xml-stream-filter command-line tool.

Selects the elements with a given local name from an XML document on standard
input (or a file), keeps those matching an optional XPath filter and writes an
optional XPath transformation of each of them to standard output (or a file).
Gzip, bzip2 and xz compressed input is decompressed transparently.

Exit codes: 0 success, 1 parse or I/O failure, 2 configuration error,
130 interrupted.
"""

import argparse
import json
import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple

from lxml import etree

from xml_stream_filter import __version__
from xml_stream_filter.api import (
    AcceptAllPredicate,
    MatchPredicate,
    MatchTransformer,
    SerializingTransformer,
    XmlStreamFilter,
    XPathPredicate,
    XPathTransformer,
)
from xml_stream_filter.shared import (
    ConfigError,
    ConfigValidationError,
    FilterSettings,
    XMLStreamParseError,
    get_logger,
)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.settings = FilterSettings(close_streams=False)
        self.namespaces: Dict[str, str] = {}
        self.pretty_print = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Recognised keys: ``buffer_size``, ``encoding``, ``auto_decompress``,
        ``pretty_print`` and ``namespaces`` (prefix to URI mapping).

        Raises:
            ConfigValidationError: If the file cannot be read or holds invalid values
        """
        config = cls()
        try:
            with config_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigValidationError(
                f"Could not load config file {config_path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Config file {config_path} must hold a JSON object"
            )

        overrides = {
            key: data[key]
            for key in ("buffer_size", "encoding", "auto_decompress")
            if key in data
        }
        if overrides:
            config.settings = config.settings.override(**overrides)
        config.pretty_print = bool(data.get("pretty_print", config.pretty_print))
        namespaces = data.get("namespaces", {})
        if not isinstance(namespaces, dict):
            raise ConfigValidationError(
                "namespaces must map prefixes to URIs", field_name="namespaces"
            )
        config.namespaces.update(namespaces)
        return config


def parse_namespace(value: str) -> Tuple[str, str]:
    """Parse a ``PREFIX=URI`` namespace binding."""
    prefix, sep, uri = value.partition("=")
    if not sep or not prefix or not uri:
        raise argparse.ArgumentTypeError(
            f"Namespace must be given as PREFIX=URI, got: {value}"
        )
    return prefix, uri


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-stream-filter",
        description=(
            "Stream-filter XML elements by local name, test them with an XPath "
            "filter and write an XPath transformation of the matches"
        )
    )

    parser.add_argument("--version", action="version", version=__version__)

    parser.add_argument(
        "element",
        help="Local name of the elements to select (e.g. book)"
    )
    parser.add_argument(
        "--filter", "-f",
        dest="filter_xpath",
        metavar="XPATH",
        help="Keep only elements for which this XPath finds something"
    )
    parser.add_argument(
        "--transform", "-t",
        dest="transform_xpath",
        metavar="XPATH",
        help="Write the result of this XPath for each kept element "
             "(default: the element itself as XML)"
    )
    parser.add_argument(
        "--namespace", "-n",
        dest="namespaces",
        type=parse_namespace,
        action="append",
        default=[],
        metavar="PREFIX=URI",
        help="Namespace binding usable in the XPath expressions (repeatable)"
    )
    parser.add_argument(
        "--input", "-i",
        type=Path,
        help="Input file (default: stdin)"
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print elements written as XML"
    )
    parser.add_argument(
        "--no-decompress",
        action="store_true",
        help="Do not sniff the input for gzip, bzip2 or xz compression"
    )
    parser.add_argument(
        "--buffer-size",
        type=int,
        metavar="BYTES",
        help="Buffer size of the input and output streams"
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    verbosity.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def build_filter(args: argparse.Namespace, config: CLIConfig) -> XmlStreamFilter:
    """Assemble a configured engine from parsed arguments.

    Raises:
        ConfigError: If the element name, an XPath or a setting is invalid
    """
    if args.buffer_size is not None:
        config.settings = config.settings.override(buffer_size=args.buffer_size)
    if args.no_decompress:
        config.settings = config.settings.override(auto_decompress=False)
    config.namespaces.update(dict(args.namespaces))
    pretty_print = args.pretty or config.pretty_print

    predicate: MatchPredicate = AcceptAllPredicate()
    if args.filter_xpath:
        predicate = XPathPredicate(args.filter_xpath, config.namespaces)

    transformer: MatchTransformer = SerializingTransformer(pretty_print=pretty_print)
    if args.transform_xpath:
        transformer = XPathTransformer(args.transform_xpath, config.namespaces)

    return XmlStreamFilter.create(
        args.element,
        predicate=predicate,
        transformer=transformer,
        settings=config.settings,
    )


def run(args: argparse.Namespace, stdin: BinaryIO, stdout: BinaryIO) -> int:
    """Run the filter described by ``args`` and return the exit code."""
    logger = get_logger(__name__, None, "cli")

    try:
        config = CLIConfig.from_file(args.config) if args.config else CLIConfig()
        stream_filter = build_filter(args, config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        with ExitStack() as stack:
            source = stack.enter_context(args.input.open("rb")) if args.input else stdin
            target = stack.enter_context(args.output.open("wb")) if args.output else stdout
            statistics = stream_filter.filter(source, target)
    except XMLStreamParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except etree.XPathEvalError as e:
        print(f"XPath evaluation error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.info(
        "Filtering finished",
        extra={
            "elements_matched": statistics.elements_matched,
            "elements_accepted": statistics.elements_accepted,
        }
    )
    return EXIT_SUCCESS


def configure_logging(args: argparse.Namespace) -> None:
    """Set up logging verbosity."""
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR, stream=sys.stderr)
    else:
        logging.basicConfig(level=logging.WARNING, stream=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args)

    try:
        return run(args, sys.stdin.buffer, sys.stdout.buffer)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
