"""Command-line interface for stepflow.

Provides CLI commands for converting step diagrams to state machine CSV.

Example Usage
-------------
    # From command line:
    stepflow --help
    stepflow convert --input diagram.json --out state_machine.csv
    stepflow validate --input diagram.json --strict
    stepflow dictionaries --input diagram.json --out dictionaries/
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
