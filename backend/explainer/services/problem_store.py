from __future__ import annotations

from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..cache import TTLCache
from ..config import settings
from ..enums import Rating, Subject
from ..exceptions import NotFoundError, PermissionDeniedError
from ..logger import logger
from ..models import Problem
from ..schemas import ProblemOut, ProblemOwner

ALL_PROBLEMS_KEY = "problems:all"
USER_PROBLEMS_PREFIX = "problems:user_"
PROBLEM_PREFIX = "problem:"


def user_problems_key(user_id: int) -> str:
    return f"{USER_PROBLEMS_PREFIX}{user_id}"


def problem_key(problem_id: int) -> str:
    return f"{PROBLEM_PREFIX}{problem_id}"


def problem_to_out(problem: Problem) -> ProblemOut:
    owner = None
    if problem.user is not None:
        owner = ProblemOwner(name=problem.user.name, avatar=problem.user.avatar)
    return ProblemOut(
        id=problem.id,
        imageName=problem.image_name,
        imageData=problem.image_data,
        mimeType=problem.mime_type,
        question=problem.question,
        aiResponse=problem.ai_response,
        rating=problem.rating,
        subject=problem.subject,
        createdAt=problem.created_at,
        updatedAt=problem.updated_at,
        userId=problem.user_id,
        user=owner,
    )


class ProblemStore:
    """
    Persistence for problems with a read-through cache in front of the
    list/detail queries. Every write drops the cache keys it can affect.
    """

    def __init__(
        self,
        cache: TTLCache,
        list_ttl: Optional[float] = None,
        detail_ttl: Optional[float] = None,
    ) -> None:
        self.cache = cache
        self.list_ttl = settings.CACHE_LIST_TTL_SECONDS if list_ttl is None else list_ttl
        self.detail_ttl = settings.CACHE_DETAIL_TTL_SECONDS if detail_ttl is None else detail_ttl

    async def create(
        self,
        db: AsyncSession,
        *,
        image_data: str,
        mime_type: str,
        ai_response: str,
        image_name: Optional[str] = None,
        question: Optional[str] = None,
        subject: Optional[Subject] = None,
        user_id: Optional[int] = None,
    ) -> Problem:
        problem = Problem(
            image_data=image_data,
            image_name=image_name,
            mime_type=mime_type,
            question=question,
            ai_response=ai_response,
            subject=subject,
            user_id=user_id,
        )
        db.add(problem)
        await db.commit()
        await db.refresh(problem)

        self.invalidate_lists(user_id)
        logger.info(
            "Problem created",
            extra={"problem_id": problem.id, "user_id": user_id, "subject": subject.value if subject else None},
        )
        return problem

    async def list(self, db: AsyncSession, mine_for_user_id: Optional[int] = None) -> List[ProblemOut]:
        cache_key = ALL_PROBLEMS_KEY if mine_for_user_id is None else user_problems_key(mine_for_user_id)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Cache hit for: {cache_key}")
            return cached
        logger.info(f"Cache miss for: {cache_key}")

        query = select(Problem).options(selectinload(Problem.user))
        if mine_for_user_id is not None:
            query = query.where(Problem.user_id == mine_for_user_id)
        query = query.order_by(desc(Problem.created_at), desc(Problem.id))

        result = await db.execute(query)
        problems = [problem_to_out(p) for p in result.scalars().all()]

        self.cache.set(cache_key, problems, self.list_ttl)
        return problems

    async def get_by_id(self, db: AsyncSession, problem_id: int) -> ProblemOut:
        cache_key = problem_key(problem_id)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Cache hit for: {cache_key}")
            return cached
        logger.info(f"Cache miss for: {cache_key}")

        result = await db.execute(
            select(Problem).options(selectinload(Problem.user)).where(Problem.id == problem_id)
        )
        problem = result.scalar_one_or_none()
        if problem is None:
            raise NotFoundError()

        out = problem_to_out(problem)
        self.cache.set(cache_key, out, self.detail_ttl)
        return out

    async def set_rating(
        self,
        db: AsyncSession,
        problem_id: int,
        rating: Rating,
        requesting_user_id: int,
    ) -> Problem:
        problem = await db.get(Problem, problem_id)
        if problem is None:
            raise NotFoundError()

        if problem.user_id != requesting_user_id:
            logger.warning(
                "Rating rejected for non-owner",
                extra={"problem_id": problem_id, "owner_id": problem.user_id, "user_id": requesting_user_id},
            )
            raise PermissionDeniedError()

        problem.rating = Rating(rating)
        await db.commit()
        await db.refresh(problem)

        self.cache.delete(problem_key(problem_id))
        self.invalidate_lists(problem.user_id)
        logger.info("Problem rated", extra={"problem_id": problem_id, "rating": problem.rating.value})
        return problem

    async def count(self, db: AsyncSession) -> int:
        return int((await db.execute(select(func.count()).select_from(Problem))).scalar_one())

    def invalidate_lists(self, user_id: Optional[int] = None) -> None:
        self.cache.delete(ALL_PROBLEMS_KEY)
        if user_id is not None:
            self.cache.delete(user_problems_key(user_id))

    def invalidate_all_lists(self) -> None:
        self.cache.delete(ALL_PROBLEMS_KEY)
        self.cache.delete_prefix(USER_PROBLEMS_PREFIX)

    def invalidate_problem(self, problem_id: int) -> None:
        self.cache.delete(problem_key(problem_id))
