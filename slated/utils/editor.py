"""Editor integration utilities."""

from __future__ import annotations

import subprocess
from pathlib import Path


def open_in_editor(path: Path, editor: str) -> None:
    """Open a file in the configured editor and wait for it to exit.

    Raises:
        RuntimeError: If the editor can't be started or exits with an error.
    """
    try:
        subprocess.run([editor, str(path)], check=True)
    except FileNotFoundError:
        raise RuntimeError(f"Editor not found: {editor}") from None
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"Editor exited with error: {e.returncode}") from None
