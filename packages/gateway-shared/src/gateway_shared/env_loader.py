"""Utility to load the project level .env file exactly once."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[4]
ENV_PATH = PROJECT_ROOT / ".env"
ENV_TEMPLATE = PROJECT_ROOT / ".env.template"


def _resolve_env_file() -> Optional[Path]:
    explicit = os.getenv("GATEWAY_ENV_FILE")
    if explicit:
        return Path(explicit)
    if ENV_PATH.exists():
        return ENV_PATH
    if ENV_TEMPLATE.exists():
        return ENV_TEMPLATE
    return None


@lru_cache(maxsize=1)
def load_project_dotenv() -> Optional[Path]:
    """Load the repository-wide .env file if present.

    Variables already set in the process environment win over the file.
    """
    target = _resolve_env_file()
    if target is None or not target.exists():
        return None
    load_dotenv(target, override=False)
    return target
