"""CSV I/O utilities for stepflow.

Provides output directory creation and DataFrame writing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_output_dir(path: PathLike) -> Path:
    """Create the directory at path if it does not exist and return it.

    Parameters
    ----------
    path : PathLike
        Directory path to create.

    Returns
    -------
    Path
        The created/existing directory path.
    """
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def write_dataframe(df: pd.DataFrame, path: PathLike, *, index: bool = False) -> Path:
    """Write DataFrame to path ensuring the parent directory exists.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to write.
    path : PathLike
        Output path.
    index : bool
        Whether to write row index (default: False).

    Returns
    -------
    Path
        The output path.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=index, lineterminator="\n", encoding="utf-8")
    logger.debug("Wrote %d row(s) to %s", len(df), output_path)
    return output_path

