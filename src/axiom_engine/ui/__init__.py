"""Command-line surface for axiom-engine."""

from axiom_engine.ui.cli import CLIError, InputDocumentError, build_parser, main, run_cli

__all__ = ["CLIError", "InputDocumentError", "build_parser", "main", "run_cli"]
