"""Preparation of the working and download directories."""

import logging
import tempfile
from pathlib import Path
from typing import Union

from ..application.exceptions import SetupError

logger = logging.getLogger(__name__)


def ensure_writable_dir(path: Union[str, Path], label: str) -> Path:
    """
    Create a directory if needed and check that it accepts new files.

    Args:
        path: The directory, relative paths are resolved against the
              current working directory.
        label: Human-readable role of the directory, used in messages.

    Returns:
        The absolute directory path.

    Raises:
        SetupError: If the directory cannot be created or written to.
    """

    directory = Path(path).expanduser().resolve()
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SetupError(
            f"Cannot create {label} directory {directory}: {e}"
        ) from e

    try:
        with tempfile.TemporaryFile(dir=directory):
            pass
    except OSError as e:
        raise SetupError(
            f"The {label} directory {directory} is not writable: {e}"
        ) from e

    logger.debug(f"Using {label} directory {directory}")
    return directory
