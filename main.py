"""vault-analyzer — group Vault audit log failures into ranked incidents."""

import logging
import sys
from argparse import ArgumentParser

from vault_analyzer.aggregator import analyze_lines
from vault_analyzer.config import OUTPUT_FORMATS, load_config, load_yaml_config
from vault_analyzer.reader import read_lines
from vault_analyzer.report import build_report, format_report_json, format_report_text
from vault_analyzer.rules import load_rules

logger = logging.getLogger(__name__)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="vault-analyzer",
        description="Group Vault audit log failures into ranked incidents.",
    )
    parser.add_argument(
        "log_file",
        help="Vault audit log file",
    )
    parser.add_argument(
        "--rules",
        help="Rule file overriding the built-in rules (default: ./rules.json)",
    )
    parser.add_argument(
        "--config",
        help="YAML config file",
    )
    parser.add_argument(
        "--top-paths",
        type=int,
        help="Number of failing paths in the summary (default: 3)",
    )
    parser.add_argument(
        "--top-errors",
        type=int,
        help="Number of error texts in the summary (default: 5)",
    )
    parser.add_argument(
        "--output",
        choices=OUTPUT_FORMATS,
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug details to stderr",
    )
    return parser


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [ANALYZER] %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def run(args) -> int:
    """Load config and rules, aggregate the log, print the report."""
    try:
        config = load_config(args, load_yaml_config(args.config))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    rules, source = load_rules(config.rules_file)
    logger.debug("Loaded %d rules from %s source", len(rules), source)

    try:
        lines = read_lines(config.log_file)
    except OSError as e:
        logger.debug("Open failed: %s", e)
        print(f"Error: Could not open file '{config.log_file}'")
        return 1

    aggregator = analyze_lines(lines)
    report = build_report(
        aggregator,
        rules,
        top_paths=config.top_paths,
        top_errors=config.top_errors,
        rules_source=source,
    )

    if config.output == "json":
        print(format_report_json(report))
    else:
        print(format_report_text(report))
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    sys.exit(run(args))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)
