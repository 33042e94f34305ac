"""Core business services."""
from .chunker import CodeChunker
from .summarizer import Summarizer
from .embedding_service import EmbeddingService
from .index_service import IndexService
from .index_jobs import IndexJobRunner
from .retrieval_service import RetrievalService
from .answer_service import AnswerService
from .commit_service import CommitService, CommitSummarizer

__all__ = [
    "CodeChunker",
    "Summarizer",
    "EmbeddingService",
    "IndexService",
    "IndexJobRunner",
    "RetrievalService",
    "AnswerService",
    "CommitSummarizer",
    "CommitService",
]
