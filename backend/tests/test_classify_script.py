import base64

import pytest
from sqlalchemy import select

from explainer.enums import Subject
from explainer.models import Problem
from scripts import classify_problems as script

from conftest import FakeVision, JPEG_BYTES


@pytest.fixture
def patched_script(monkeypatch, session_factory):
    vision = FakeVision(label="Computer Science - Algorithms")
    monkeypatch.setattr(script, "AsyncSessionLocal", session_factory)
    monkeypatch.setattr(script, "GeminiVisionModel", lambda: vision)
    return vision


async def add_unclassified(db) -> Problem:
    problem = Problem(
        image_data=base64.b64encode(JPEG_BYTES).decode("ascii"),
        mime_type="image/jpeg",
        ai_response="Trace the loop by hand.",
    )
    db.add(problem)
    await db.commit()
    await db.refresh(problem)
    return problem


def test_parser_accepts_dry_run():
    args = script._build_parser().parse_args(["--dry-run"])
    assert args.dry_run is True
    assert script._build_parser().parse_args([]).dry_run is False


@pytest.mark.asyncio
async def test_dry_run_only_counts(db, patched_script):
    await add_unclassified(db)

    assert await script._count_unclassified() == 1
    await script.classify_problems(dry_run=True)

    assert patched_script.calls == []
    db.expire_all()
    assert (await db.execute(select(Problem.subject))).scalar_one() is None


@pytest.mark.asyncio
async def test_run_assigns_subjects(db, patched_script):
    problem_id = (await add_unclassified(db)).id

    await script.classify_problems(dry_run=False)

    db.expire_all()
    assert (await db.get(Problem, problem_id)).subject is Subject.CS_ALGORITHMS
    assert await script._count_unclassified() == 0
