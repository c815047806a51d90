"""Input validation utilities."""

import os
from pathlib import Path
from typing import Iterable, List, Union

from ..core.errors import ConfigurationError


def validate_input_file(path: Union[str, Path]) -> Path:
    """Validate that a source file exists and is readable.

    Args:
        path: Path to file to validate

    Returns:
        Path object for the file

    Raises:
        ConfigurationError: If the path is missing, not a file or not readable
    """
    path = Path(path)

    if not path.exists():
        raise ConfigurationError(f"Input file does not exist: {path}")

    if not path.is_file():
        raise ConfigurationError(f"Input path is not a file: {path}")

    if not os.access(path, os.R_OK):
        raise ConfigurationError(f"Input file is not readable: {path}")

    return path


def validate_input_files(paths: Iterable[Union[str, Path]]) -> List[Path]:
    """Validate several source files, keeping their order."""
    return [validate_input_file(path) for path in paths]


def validate_unique_labels(labels: Iterable[str]) -> None:
    """Reject rendition lists that are empty or repeat a label.

    Raises:
        ConfigurationError: If no labels are given or one appears twice
    """
    seen = set()
    for label in labels:
        if label in seen:
            raise ConfigurationError(f"Resolution {label} requested more than once")
        seen.add(label)
    if not seen:
        raise ConfigurationError("At least one resolution is required")
