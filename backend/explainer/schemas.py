"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from .enums import Rating, Subject

# ===== Common Schemas =====

class HealthResponse(BaseModel):
    status: str

class VersionResponse(BaseModel):
    version: str

class MessageResponse(BaseModel):
    message: str

# ===== Auth Schemas =====

class GoogleSignInRequest(BaseModel):
    credential: str = Field(min_length=1)

class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    avatar: Optional[str] = None

class UserEnvelope(BaseModel):
    user: UserProfile

class CSRFTokenResponse(BaseModel):
    csrfToken: str

# ===== Problem Schemas =====

class ProblemOwner(BaseModel):
    name: str
    avatar: Optional[str] = None

class ProblemOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    imageName: Optional[str] = None
    imageData: str
    mimeType: str
    question: Optional[str] = None
    aiResponse: str
    rating: Optional[Rating] = None
    subject: Optional[Subject] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
    userId: Optional[int] = None
    user: Optional[ProblemOwner] = None

class AnalyzeResponse(BaseModel):
    analysis: str
    originalQuestion: Optional[str] = None
    problemId: int
    subject: Subject

class RatingRequest(BaseModel):
    rating: Rating

class RatedProblem(BaseModel):
    id: int
    rating: Optional[Rating] = None
    updatedAt: Optional[datetime] = None

class RatingResponse(BaseModel):
    message: str
    problem: RatedProblem

class SubjectsResponse(BaseModel):
    subjects: List[str]

class ClassificationResponse(BaseModel):
    message: str
    totalFound: int
    processed: int
    skipped: int = 0
    errors: int = 0

# ===== Operational Schemas =====

class CacheStats(BaseModel):
    size: int
    keys: List[str]

class CacheStatsResponse(BaseModel):
    cacheStats: CacheStats
    description: str

class DatabaseCheckResponse(BaseModel):
    message: str
    problemCount: int

class ApiError(BaseModel):
    error: str
    message: Any
    status_code: Optional[int] = None
    details: Optional[List[Dict[str, Any]]] = None
