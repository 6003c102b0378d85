"""I/O utilities for stepflow.

Provides logging, CSV I/O, and diagram/dictionary persistence.
"""

from .logging import (
    close_file_handlers,
    conversion_record,
    get_logger,
    get_timestamped_log_path,
    log_json,
    log_yaml,
    validation_record,
)
from .csv import ensure_output_dir, write_dataframe
from .diagram import (
    DiagramFormatError,
    DiagramStorage,
    load_diagram,
    load_dictionary_json,
    save_diagram,
    save_dictionary_json,
    validate_snapshot,
)

__all__ = [
    # Logging
    "close_file_handlers",
    "conversion_record",
    "get_logger",
    "get_timestamped_log_path",
    "log_json",
    "log_yaml",
    "validation_record",
    # CSV I/O
    "ensure_output_dir",
    "write_dataframe",
    # Diagram persistence
    "DiagramFormatError",
    "DiagramStorage",
    "load_diagram",
    "save_diagram",
    "validate_snapshot",
    "load_dictionary_json",
    "save_dictionary_json",
]
