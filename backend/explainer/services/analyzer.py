from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..enums import Subject
from ..exceptions import AnalysisFailedError, ValidationError
from ..inference.gemini import VisionModel
from ..inference.prompts import build_tutor_prompt
from ..logger import logger
from ..models import User
from ..rendering.sanitize import sanitize_filename, sanitize_question
from .classifier import SubjectClassifier
from .problem_store import ProblemStore
from .uploads import staged_image


@dataclass(frozen=True)
class AnalysisResult:
    analysis: str
    original_question: Optional[str]
    problem_id: int
    subject: Subject


class ProblemAnalyzer:
    """Explains an uploaded problem image, files it under a subject and stores it."""

    def __init__(
        self,
        model: VisionModel,
        classifier: SubjectClassifier,
        store: ProblemStore,
        *,
        upload_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        question_max_length: Optional[int] = None,
    ) -> None:
        self.model = model
        self.classifier = classifier
        self.store = store
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.max_bytes = max_bytes or settings.MAX_UPLOAD_BYTES
        self.question_max_length = question_max_length or settings.QUESTION_MAX_LENGTH

    def clean_question(self, question: Optional[str]) -> Optional[str]:
        if question is not None and len(question) > self.question_max_length:
            raise ValidationError(f"Question must be less than {self.question_max_length} characters")
        return sanitize_question(question)

    async def analyze(
        self,
        db: AsyncSession,
        user: User,
        upload: Optional[UploadFile],
        question: Optional[str] = None,
    ) -> AnalysisResult:
        async with staged_image(
            upload,
            upload_dir=self.upload_dir,
            max_bytes=self.max_bytes,
            allowed_types=settings.ALLOWED_IMAGE_TYPES,
        ) as staged:
            clean_question = self.clean_question(question)
            image_bytes = staged.read_bytes()

            logger.info(
                "Analyzing problem image",
                extra={
                    "user_id": user.id,
                    "mime_type": staged.mime_type,
                    "size": staged.size,
                    "has_question": clean_question is not None,
                },
            )

            try:
                explanation = await self.model.generate(
                    build_tutor_prompt(clean_question), image_bytes, staged.mime_type
                )
            except Exception as e:
                logger.error(
                    f"Error analyzing problem: {e}",
                    extra={"user_id": user.id, "exc_type": type(e).__name__},
                )
                raise AnalysisFailedError()

            subject = await self.classifier.classify(
                image_bytes, staged.mime_type, clean_question, explanation
            )

            try:
                problem = await self.store.create(
                    db,
                    image_data=base64.b64encode(image_bytes).decode("ascii"),
                    image_name=sanitize_filename(staged.filename),
                    mime_type=staged.mime_type,
                    question=clean_question,
                    ai_response=explanation,
                    subject=subject,
                    user_id=user.id,
                )
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Failed to store analyzed problem: {e}", extra={"user_id": user.id})
                raise AnalysisFailedError()

        return AnalysisResult(
            analysis=explanation,
            original_question=clean_question,
            problem_id=problem.id,
            subject=subject,
        )
