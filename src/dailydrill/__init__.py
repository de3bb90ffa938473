"""dailydrill: offline-first daily language drills with spaced review."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .answer_checker import check_answer
from .cache import OfflineQuestionCache
from .question_bank import QuestionBank
from .scheduler import next_review_at, next_review_delay
from .session import DrillSession, start_today_session

__all__ = [
    "DrillSession",
    "OfflineQuestionCache",
    "QuestionBank",
    "__version__",
    "check_answer",
    "next_review_at",
    "next_review_delay",
    "start_today_session",
]

_VERSION_LINE = re.compile(r'^version\s*=\s*"([^"]+)"\s*$')


def _version_from_pyproject() -> str | None:
    """Read `[project].version` from a checkout's pyproject.toml, if any."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.exists():
            continue
        section = None
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                section = stripped
            elif section == "[project]" and (match := _VERSION_LINE.match(stripped)):
                return match.group(1)
    return None


def _resolve_version() -> str:
    local = _version_from_pyproject()
    if local is not None:
        return local
    try:
        return version("dailydrill")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _resolve_version()
