# chess_reviewer/utils/system_utils.py
"""
Provides generic, system-level utility functions.
"""
import os
import shutil
from pathlib import Path
from typing import Optional

def find_stockfish_executable(provided_path: Optional[str] = None) -> Path:
    """
    Finds a valid Stockfish executable, raising FileNotFoundError if unsuccessful.

    The search is performed in the following order of precedence:
    1. The path provided via the `provided_path` argument.
    2. The path specified in the `STOCKFISH_PATH` environment variable.
    3. The system's `PATH` environment variable (using `shutil.which`).

    Returns:
        A `pathlib.Path` object to the resolved executable.

    Raises:
        FileNotFoundError: If no Stockfish executable can be found.
    """
    candidates = [Path(p) for p in (provided_path, os.environ.get('STOCKFISH_PATH')) if p]

    for path in candidates:
        if path.is_file() and os.access(path, os.X_OK):
            return path.resolve()

    if system_path := shutil.which('stockfish'):
        return Path(system_path)

    raise FileNotFoundError(
        "Stockfish executable not found. Install it, set the STOCKFISH_PATH "
        "environment variable, or pass --stockfish."
    )
