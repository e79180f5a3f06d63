"""
Problem routes - analysis, browsing, ratings, subjects
"""
from fastapi import APIRouter, Depends, File, Form, Path, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..db import get_db
from ..models import User
from ..enums import Subject
from ..schemas import (
    AnalyzeResponse,
    ApiError,
    ClassificationResponse,
    ProblemOut,
    RatedProblem,
    RatingRequest,
    RatingResponse,
    SubjectsResponse,
)
from ..auth import get_current_user, get_current_user_optional
from ..dependencies import get_analyzer, get_classifier, get_problem_store
from ..exceptions import AuthRequiredError
from ..services.analyzer import ProblemAnalyzer
from ..services.classifier import SubjectClassifier
from ..services.problem_store import ProblemStore
from ..logger import logger

router = APIRouter(prefix="/api", tags=["Problems"])

ERROR_RESPONSES = {
    400: {"model": ApiError},
    401: {"model": ApiError},
    403: {"model": ApiError},
    404: {"model": ApiError},
}


@router.post("/analyze-problem", response_model=AnalyzeResponse, responses=ERROR_RESPONSES)
async def analyze_problem(
    image: Optional[UploadFile] = File(None),
    question: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    analyzer: ProblemAnalyzer = Depends(get_analyzer),
    db: AsyncSession = Depends(get_db),
):
    """
    Explain an uploaded problem image step by step and store the result.
    """
    logger.info(
        "Upload request received",
        extra={
            "user_id": current_user.id,
            "uploaded_file": image.filename if image else None,
            "content_type": image.content_type if image else None,
        }
    )
    result = await analyzer.analyze(db, current_user, image, question)
    return AnalyzeResponse(
        analysis=result.analysis,
        originalQuestion=result.original_question,
        problemId=result.problem_id,
        subject=result.subject,
    )


@router.get("/problems", response_model=List[ProblemOut], responses=ERROR_RESPONSES)
async def list_problems(
    mine: bool = Query(False),
    current_user: Optional[User] = Depends(get_current_user_optional),
    store: ProblemStore = Depends(get_problem_store),
    db: AsyncSession = Depends(get_db),
):
    """List problems newest first; ?mine=true limits to the caller's own"""
    if mine and current_user is None:
        raise AuthRequiredError()
    return await store.list(db, mine_for_user_id=current_user.id if mine else None)


@router.get("/problems/{problem_id}", response_model=ProblemOut, responses=ERROR_RESPONSES)
async def get_problem(
    problem_id: int = Path(..., ge=1),
    store: ProblemStore = Depends(get_problem_store),
    db: AsyncSession = Depends(get_db),
):
    """Get a single problem"""
    return await store.get_by_id(db, problem_id)


@router.put("/problems/{problem_id}/rating", response_model=RatingResponse, responses=ERROR_RESPONSES)
async def rate_problem(
    payload: RatingRequest,
    problem_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    store: ProblemStore = Depends(get_problem_store),
    db: AsyncSession = Depends(get_db),
):
    """Rate one of your own problems"""
    problem = await store.set_rating(db, problem_id, payload.rating, current_user.id)
    return RatingResponse(
        message="Rating updated successfully",
        problem=RatedProblem(id=problem.id, rating=problem.rating, updatedAt=problem.updated_at),
    )


@router.post("/classify-problems", response_model=ClassificationResponse)
async def classify_problems(
    classifier: SubjectClassifier = Depends(get_classifier),
    store: ProblemStore = Depends(get_problem_store),
    db: AsyncSession = Depends(get_db),
):
    """Assign subjects to every stored problem that has none"""
    report = await classifier.repair_unclassified(db, store)
    if report.total_found == 0:
        return ClassificationResponse(message="No unclassified problems found", totalFound=0, processed=0)
    return ClassificationResponse(
        message="Classification completed",
        totalFound=report.total_found,
        processed=report.processed,
        skipped=report.skipped,
        errors=report.errors,
    )


@router.get("/subjects", response_model=SubjectsResponse)
async def list_subjects():
    """Get the fixed list of subjects"""
    return SubjectsResponse(subjects=Subject.labels())
