from fastapi import Request

from .cache import TTLCache
from .services.analyzer import ProblemAnalyzer
from .services.classifier import SubjectClassifier
from .services.problem_store import ProblemStore


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def get_problem_store(request: Request) -> ProblemStore:
    return request.app.state.problem_store


def get_classifier(request: Request) -> SubjectClassifier:
    return request.app.state.classifier


def get_analyzer(request: Request) -> ProblemAnalyzer:
    return request.app.state.analyzer
