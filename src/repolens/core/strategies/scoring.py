
import logging
from abc import ABC, abstractmethod

from ..models.document import SearchResult

logger = logging.getLogger(__name__)


class ScoringStrategy(ABC):
    """Base class for scoring strategies."""

    @abstractmethod
    def apply(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        """Apply strategy to results."""
        ...


class KeywordBoostStrategy(ScoringStrategy):
    """Boost results whose file name or summary matches the question."""

    FILENAME_KEYWORD_BOOST = 0.10
    SUMMARY_KEYWORD_BOOST = 0.05
    TOPIC_BOOST = 0.15
    IMPLEMENTATION_BOOST = 0.05
    NON_CONFIG_BOOST = 0.05
    MIN_KEYWORD_LENGTH = 4

    # question marker -> file name markers
    DEFAULT_TOPIC_MAP = {
        "api": ("api",),
        "component": ("component",),
        "auth": ("auth",),
        "database": ("db", "prisma"),
    }
    TEST_MARKERS = ("test", "spec")
    CONFIG_MARKERS = (".config.", "package.json")

    def __init__(self, topic_map: dict[str, tuple[str, ...]] | None = None):
        """Initialize strategy.

        Args:
            topic_map: Custom question marker -> file name markers mapping.
        """
        self._topic_map = topic_map or self.DEFAULT_TOPIC_MAP

    def keywords(self, query: str) -> list[str]:
        """Lowercase whitespace-separated tokens longer than 3 chars."""
        return [w for w in query.lower().split() if len(w) >= self.MIN_KEYWORD_LENGTH]

    def boost_for(self, query: str, result: SearchResult) -> float:
        """Total boost for one result."""
        query_lower = query.lower()
        file_lower = result.file_name.lower()
        summary_lower = result.summary.lower()
        boost = 0.0

        for keyword in self.keywords(query):
            if keyword in file_lower:
                boost += self.FILENAME_KEYWORD_BOOST
            if keyword in summary_lower:
                boost += self.SUMMARY_KEYWORD_BOOST

        for marker, file_markers in self._topic_map.items():
            if marker in query_lower and any(m in file_lower for m in file_markers):
                boost += self.TOPIC_BOOST

        if not any(m in file_lower for m in self.TEST_MARKERS):
            boost += self.IMPLEMENTATION_BOOST
        if not any(m in file_lower for m in self.CONFIG_MARKERS):
            boost += self.NON_CONFIG_BOOST

        return boost

    def apply(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        """Add boosts and re-sort by boosted similarity."""
        if not results:
            return results

        for result in results:
            result.boost += self.boost_for(query, result)

        boosted = sorted(results, key=lambda r: r.similarity, reverse=True)

        if logger.isEnabledFor(logging.DEBUG):
            top_scores = ", ".join(f"{r.similarity:.2f}" for r in boosted[:3])
            logger.debug(f"Keyword boost top-3 scores: [{top_scores}]")

        return boosted


class DirectoryDiversityStrategy(ScoringStrategy):
    """Cap results per directory so one directory cannot crowd out the rest."""

    def __init__(self, max_results: int = 15, per_directory: int = 3):
        """Initialize strategy.

        Args:
            max_results: Maximum results kept.
            per_directory: Maximum results kept from one directory.
        """
        self._max_results = max_results
        self._per_directory = per_directory

    def apply(self, query: str, results: list[SearchResult]) -> list[SearchResult]:
        """Keep results in order, skipping those from saturated directories."""
        selected: list[SearchResult] = []
        directory_counts: dict[str, int] = {}

        for result in results:
            if len(selected) >= self._max_results:
                break

            count = directory_counts.get(result.directory, 0)
            if count >= self._per_directory:
                continue

            selected.append(result)
            directory_counts[result.directory] = count + 1

        if len(selected) < len(results):
            logger.info(
                f"Diversity: {len(results)} → {len(selected)} "
                f"across {len(directory_counts)} directories"
            )

        return selected
