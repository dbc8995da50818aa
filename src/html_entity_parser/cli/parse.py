"""CLI entrypoint for extracting entities from one HTML page."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import requests

from html_entity_parser.config import build_entity_list, build_settings, load_config
from html_entity_parser.exceptions import HtmlEntityParserError
from html_entity_parser.logger import setup_logger
from html_entity_parser.parser import HtmlParser


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract entity rows from HTML using a JSON entity configuration")
    parser.add_argument("--config", "-c", required=True, help="Path to JSON entity configuration")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", "-i", help="Path to input HTML file")
    source.add_argument("--url", "-u", help="URL of the page to fetch and parse")
    parser.add_argument("--out", "-o", help="Path to output JSON file (default: print to stdout)")
    parser.add_argument(
        "--entity",
        "-e",
        action="append",
        default=[],
        help="Only extract this entity (repeatable; default: all configured entities)",
    )
    parser.add_argument("--threads", type=int, help="Number of entities extracted in parallel")
    parser.add_argument("--null-value", help="Value written for fields without a match (default: null)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    args = parser.parse_args()
    setup_logger(level=getattr(logging, args.log_level))

    config_path = Path(args.config)
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        raise SystemExit(1)

    try:
        config = load_config(config_path)
        entity_list = build_entity_list(config)
        settings = build_settings(config)
    except HtmlEntityParserError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for detail in e.details.get("errors", []):
            print(f"  {detail}", file=sys.stderr)
        raise SystemExit(1)

    if args.entity:
        settings.entities_to_read = list(args.entity)
    if args.threads is not None:
        if args.threads < 1:
            print("Error: --threads must be at least 1", file=sys.stderr)
            raise SystemExit(1)
        settings.thread_count = args.threads
    if args.null_value is not None:
        settings.null_value = args.null_value

    html_parser = HtmlParser(entity_list, settings)
    try:
        if args.url:
            results = html_parser.parse_url(args.url)
        else:
            input_path = Path(args.input)
            if not input_path.exists():
                print(f"Error: Input file not found: {input_path}", file=sys.stderr)
                raise SystemExit(1)
            results = html_parser.parse_file(input_path)
    except HtmlEntityParserError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        raise SystemExit(1)
    except requests.RequestException as e:
        print(f"Error: Could not fetch {args.url}: {e}", file=sys.stderr)
        raise SystemExit(1)

    payload = json.dumps(results.to_dict(), ensure_ascii=False, indent=2)
    if args.out:
        output_path = Path(args.out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(payload, encoding="utf-8")
        print(f"Extracted {results.total_rows} rows -> {output_path}")
    else:
        print(payload)

    # keep stdout pure JSON when no output file is given
    stream = sys.stdout if args.out else sys.stderr
    print("\nSummary:", file=stream)
    for name, result in results.items():
        print(f"  {name}: {len(result)}", file=stream)


if __name__ == "__main__":
    main()
