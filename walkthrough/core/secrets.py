"""Helpers for snapshotting credentials from the environment or an optional .env file."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = BASE_DIR / ".env"
ENV_FILE_VAR = "WALKTHROUGH_ENV_FILE"
REDACTED = "***redacted***"
_dotenv_loaded = False


def load_dotenv_file(path: Optional[Path] = None) -> Optional[Path]:
    """Load the first existing .env candidate once per process; real variables win."""
    global _dotenv_loaded
    if _dotenv_loaded:
        return None
    _dotenv_loaded = True
    candidates: list[Path] = []
    if path is not None:
        candidates.append(Path(path))
    explicit = os.getenv(ENV_FILE_VAR)
    if explicit:
        candidates.append(Path(explicit))
    candidates.append(DEFAULT_ENV_FILE)
    for candidate in candidates:
        if not candidate.exists():
            continue
        load_dotenv(dotenv_path=candidate, override=False)
        logger.info("Loaded environment variables from %s", candidate)
        return candidate
    return None


def reset_dotenv_state() -> None:
    global _dotenv_loaded
    _dotenv_loaded = False


def environment_snapshot(*, use_dotenv: bool = True) -> Mapping[str, str]:
    """Return a read-only copy of the process environment."""
    if use_dotenv:
        load_dotenv_file()
    return MappingProxyType(dict(os.environ))


def redact(value: Optional[str], *, visible: int = 0) -> str:
    """Mask a credential for logs, optionally keeping a short prefix of an id."""
    if not value:
        return "EMPTY"
    if visible <= 0 or len(value) <= visible * 2:
        return REDACTED
    return f"{value[:visible]}...{REDACTED}"


__all__ = [
    "DEFAULT_ENV_FILE",
    "ENV_FILE_VAR",
    "REDACTED",
    "environment_snapshot",
    "load_dotenv_file",
    "redact",
    "reset_dotenv_state",
]
