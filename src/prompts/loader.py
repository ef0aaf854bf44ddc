from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from realtime.errors import ConfigurationError


@lru_cache(maxsize=8)
def load_prompt(filename: str) -> str:
    """Load session instructions shipped with the codebase."""

    path = Path(__file__).resolve().parent / filename
    if not path.is_file():
        raise ConfigurationError(f"Prompt file not found: {filename}")
    return path.read_text(encoding="utf-8").strip() + "\n"
