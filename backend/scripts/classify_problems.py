from __future__ import annotations

import argparse
import asyncio

from sqlalchemy import func, select

from explainer.cache import TTLCache
from explainer.db import AsyncSessionLocal, engine
from explainer.inference.gemini import GeminiVisionModel
from explainer.logger import logger
from explainer.models import Problem
from explainer.services.classifier import SubjectClassifier
from explainer.services.problem_store import ProblemStore


async def _count_unclassified() -> int:
    async with AsyncSessionLocal() as db:
        count = (
            await db.execute(select(func.count()).select_from(Problem).where(Problem.subject.is_(None)))
        ).scalar_one()
        return int(count)


async def classify_problems(*, dry_run: bool) -> None:
    pending = await _count_unclassified()
    logger.info("Unclassified problems found", extra={"pending": pending})

    if dry_run or pending == 0:
        await engine.dispose()
        return

    # the API process keeps its own cache; its entries age out on their TTL
    store = ProblemStore(TTLCache())
    classifier = SubjectClassifier(GeminiVisionModel())

    async with AsyncSessionLocal() as db:
        report = await classifier.repair_unclassified(db, store)

    logger.info(
        "Subject repair finished",
        extra={
            "total_found": report.total_found,
            "processed": report.processed,
            "skipped": report.skipped,
            "errors": report.errors,
        },
    )
    await engine.dispose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assign a subject to every stored problem that does not have one yet.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report how many problems are unclassified.",
    )
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    asyncio.run(classify_problems(dry_run=bool(args.dry_run)))


if __name__ == "__main__":
    main()
