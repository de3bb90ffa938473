from __future__ import annotations

import shutil
import sys
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dailydrill.models import FillQuestion, MatchQuestion, QuestionRecord, SingleQuestion  # noqa: E402

FIXED_NOW = datetime(2025, 3, 10, 9, 30, tzinfo=UTC)


def _tmp_path_fixture() -> Iterator[Path]:
    """Provide per-test temporary directory path inside the workspace.

    Temporary cache databases live under ``.tmp_pytest/`` in the project
    directory and are removed after each test.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def single_question() -> SingleQuestion:
    return SingleQuestion(
        id="q-single",
        prompt="Pick b",
        options=("a", "b", "c"),
        answer_index=1,
        category="vocabulary",
        difficulty=1,
        explanation="b is second",
    )


@pytest.fixture
def match_question() -> MatchQuestion:
    return MatchQuestion(
        id="q-match",
        instruction="Match words",
        left=("みず", "いぬ", "ほん"),
        right=("book", "water", "dog"),
        pairs=((0, 1), (1, 2), (2, 0)),
        category="vocabulary",
        difficulty=2,
    )


@pytest.fixture
def fill_question() -> FillQuestion:
    return FillQuestion(
        id="q-fill",
        prompt="Romaji for すし",
        blanks=1,
        solutions=(("sushi", "Sushi"),),
        category="reading",
        difficulty=1,
    )


@pytest.fixture
def sample_questions(
    single_question: SingleQuestion, match_question: MatchQuestion, fill_question: FillQuestion
) -> list[QuestionRecord]:
    return [single_question, match_question, fill_question]
