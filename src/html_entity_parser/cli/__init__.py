"""CLI module exports."""

from html_entity_parser.cli.parse import main as parse_main

__all__ = ["parse_main"]
