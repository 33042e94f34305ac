"""Scoring, selection and chunk boundary strategies."""
from .scoring import ScoringStrategy, KeywordBoostStrategy, DirectoryDiversityStrategy
from .boundaries import BoundaryDetector, BraceBoundaryDetector, PythonBoundaryDetector

__all__ = [
    "ScoringStrategy",
    "KeywordBoostStrategy",
    "DirectoryDiversityStrategy",
    "BoundaryDetector",
    "BraceBoundaryDetector",
    "PythonBoundaryDetector",
]
