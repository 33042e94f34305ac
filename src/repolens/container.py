import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def _make_vector_store(settings: Settings):
    from .infrastructure.vector_stores import ChromaVectorStore, InMemoryVectorStore

    if settings.vector_store == "memory":
        return InMemoryVectorStore()
    return ChromaVectorStore(
        host=settings.chroma_host,
        port=settings.chroma_port,
        collection_name=settings.chroma_collection,
    )


def _make_github(settings: Settings):
    from .infrastructure.fetchers import GitHubRepoFetcher

    return GitHubRepoFetcher(
        token=settings.github_token,
        branch=settings.github_branch,
        max_concurrency=settings.fetch_max_concurrency,
        max_file_bytes=settings.fetch_max_file_bytes,
    )


def _make_fetcher(settings: Settings, github):
    from .infrastructure.fetchers import LocalRepoFetcher, RoutingRepoFetcher

    local = LocalRepoFetcher(max_file_bytes=settings.fetch_max_file_bytes)
    return RoutingRepoFetcher(github=github, local=local)


def configure_container(settings: Settings, target: Container | None = None) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.
        target: Container to configure (module-level container if None).

    Returns:
        Configured container.
    """
    from .core.protocols.commit_source import CommitSourceProtocol
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.llm import LLMProtocol
    from .core.protocols.repo_fetcher import RepoFetcherProtocol
    from .core.protocols.vector_store import VectorStoreProtocol
    from .core.services.answer_service import AnswerService
    from .core.services.chunker import CodeChunker
    from .core.services.commit_service import CommitService, CommitSummarizer
    from .core.services.embedding_service import EmbeddingService
    from .core.services.index_jobs import IndexJobRunner
    from .core.services.index_service import IndexService
    from .core.services.retrieval_service import RetrievalService
    from .core.services.summarizer import Summarizer
    from .infrastructure.embeddings.sentence_transformer import (
        SentenceTransformerEmbedder,
    )
    from .infrastructure.fetchers import GitHubRepoFetcher
    from .infrastructure.llm.openai_client import OpenAICompatibleClient

    c = target if target is not None else container

    c.register(
        EmbedderProtocol,
        lambda: SentenceTransformerEmbedder(settings.embedding_model),
        singleton=True,
    )

    c.register(VectorStoreProtocol, lambda: _make_vector_store(settings), singleton=True)

    c.register(GitHubRepoFetcher, lambda: _make_github(settings), singleton=True)

    c.register(
        RepoFetcherProtocol,
        lambda: _make_fetcher(settings, c.resolve(GitHubRepoFetcher)),
        singleton=True,
    )

    c.register(CommitSourceProtocol, lambda: c.resolve(GitHubRepoFetcher), singleton=True)

    c.register(
        LLMProtocol,
        lambda: OpenAICompatibleClient(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            api_key=settings.llm_api_key,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        ),
        singleton=True,
    )

    c.register(
        EmbeddingService,
        lambda: EmbeddingService(
            embedder=c.resolve(EmbedderProtocol),
            passage_prefix=settings.embedding_passage_prefix,
            query_prefix=settings.embedding_query_prefix,
        ),
        singleton=True,
    )

    c.register(
        CodeChunker,
        lambda: CodeChunker(max_chunk_size=settings.chunk_size),
        singleton=True,
    )

    c.register(
        Summarizer,
        lambda: Summarizer(
            llm=c.resolve(LLMProtocol),
            max_input_chars=settings.summary_max_input_chars,
            max_tokens=settings.summary_max_tokens,
        ),
        singleton=True,
    )

    c.register(
        IndexService,
        lambda: IndexService(
            fetcher=c.resolve(RepoFetcherProtocol),
            chunker=c.resolve(CodeChunker),
            summarizer=c.resolve(Summarizer),
            embeddings=c.resolve(EmbeddingService),
            vector_store=c.resolve(VectorStoreProtocol),
            batch_size=settings.index_batch_size,
            concurrency=settings.index_concurrency,
        ),
        singleton=True,
    )

    c.register(
        IndexJobRunner,
        lambda: IndexJobRunner(c.resolve(IndexService)),
        singleton=True,
    )

    c.register(
        RetrievalService,
        lambda: RetrievalService(
            embeddings=c.resolve(EmbeddingService),
            vector_store=c.resolve(VectorStoreProtocol),
            top_k=settings.rag_top_k,
            fetch_k=settings.rag_fetch_k,
            vector_threshold=settings.rag_vector_threshold,
            per_directory=settings.rag_per_directory,
        ),
        singleton=True,
    )

    c.register(
        AnswerService,
        lambda: AnswerService(
            llm=c.resolve(LLMProtocol),
            retrieval=c.resolve(RetrievalService),
            max_tokens=settings.llm_max_tokens,
            max_code_chars=settings.rag_max_code_chars,
        ),
        singleton=True,
    )

    c.register(
        CommitSummarizer,
        lambda: CommitSummarizer(
            llm=c.resolve(LLMProtocol),
            max_diff_chars=settings.commit_max_diff_chars,
            max_tokens=settings.commit_summary_max_tokens,
        ),
        singleton=True,
    )

    c.register(
        CommitService,
        lambda: CommitService(
            source=c.resolve(CommitSourceProtocol),
            summarizer=c.resolve(CommitSummarizer),
            limit=settings.commit_poll_limit,
            concurrency=settings.fetch_max_concurrency,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return c
