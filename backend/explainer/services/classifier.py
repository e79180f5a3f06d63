from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..enums import FALLBACK_SUBJECT, Subject
from ..inference.gemini import VisionModel
from ..inference.prompts import build_classification_prompt
from ..logger import logger
from ..models import Problem
from .problem_store import ProblemStore


@dataclass(frozen=True)
class RepairReport:
    total_found: int
    processed: int
    skipped: int
    errors: int


class SubjectClassifier:
    """Maps a problem image onto the closed Subject enumeration."""

    def __init__(self, model: VisionModel, context_chars: Optional[int] = None) -> None:
        if model is None:
            raise ValueError("Vision model must be provided.")
        self.model = model
        self.context_chars = settings.CLASSIFIER_CONTEXT_CHARS if context_chars is None else context_chars

    def build_prompt(self, question: Optional[str] = None, prior_response: Optional[str] = None) -> str:
        return build_classification_prompt(
            Subject.labels(),
            question=question,
            prior_response=prior_response,
            context_chars=self.context_chars,
        )

    async def classify(
        self,
        image_bytes: bytes,
        mime_type: str,
        question: Optional[str] = None,
        prior_response: Optional[str] = None,
    ) -> Subject:
        """
        Ask the model for a label and accept it only on an exact match.

        Never raises: backend errors and unknown labels both resolve to the
        fallback subject.
        """
        prompt = self.build_prompt(question, prior_response)
        try:
            raw = await self.model.generate(prompt, image_bytes, mime_type)
        except Exception as e:
            logger.error(f"Error classifying subject: {e}", extra={"exc_type": type(e).__name__})
            return FALLBACK_SUBJECT

        label = (raw or "").strip()
        subject = Subject.from_label(label)
        if subject is None:
            logger.warning(
                f"Classification returned invalid subject: {label[:100]}",
                extra={"fallback": FALLBACK_SUBJECT.value},
            )
            return FALLBACK_SUBJECT
        return subject

    async def repair_unclassified(self, db: AsyncSession, store: ProblemStore) -> RepairReport:
        """
        Classify every stored problem that has no subject yet.

        Rows are handled one at a time. Each write only applies while the
        subject is still NULL, so a concurrent writer keeps its value and the
        row is counted as skipped. A row whose write fails stays NULL for the
        next run.
        """
        result = await db.execute(
            select(
                Problem.id,
                Problem.image_data,
                Problem.mime_type,
                Problem.question,
                Problem.ai_response,
            )
            .where(Problem.subject.is_(None))
            .order_by(Problem.id)
        )
        rows = result.all()

        if not rows:
            logger.info("No unclassified problems found")
            return RepairReport(total_found=0, processed=0, skipped=0, errors=0)

        processed = 0
        skipped = 0
        errors = 0

        for row in rows:
            try:
                image_bytes = base64.b64decode(row.image_data, validate=False)
                subject = await self.classify(image_bytes, row.mime_type, row.question, row.ai_response)

                updated = await db.execute(
                    update(Problem)
                    .where(Problem.id == row.id, Problem.subject.is_(None))
                    .values(subject=subject)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()

                store.invalidate_problem(row.id)
                if updated.rowcount == 0:
                    skipped += 1
                    logger.info(f"Problem {row.id} was classified concurrently, skipping")
                    continue

                processed += 1
                logger.info(f"Classified problem {row.id} as: {subject.value}")
            except binascii.Error as e:
                errors += 1
                logger.error(f"Stored image for problem {row.id} could not be decoded: {e}")
            except Exception as e:
                await db.rollback()
                errors += 1
                logger.error(
                    f"Error classifying problem {row.id}: {e}",
                    extra={"problem_id": row.id, "exc_type": type(e).__name__},
                )

        store.invalidate_all_lists()

        report = RepairReport(
            total_found=len(rows),
            processed=processed,
            skipped=skipped,
            errors=errors,
        )
        logger.info(
            "Classification completed",
            extra={
                "total_found": report.total_found,
                "processed": report.processed,
                "skipped": report.skipped,
                "errors": report.errors,
            },
        )
        return report
