"""
File I/O utilities
"""

import os
from pathlib import Path
from typing import Union


def write_source(source: str, output_path: Union[str, Path]) -> Path:
    """
    Write generated source, creating parent directories as needed.

    Args:
        source: Python source code
        output_path: Destination file

    Returns:
        The path written
    """
    path = Path(output_path)
    os.makedirs(path.parent, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(source)

    return path
