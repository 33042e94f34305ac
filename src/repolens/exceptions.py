"""Domain exceptions."""


class RepoLensError(Exception):
    """Base class for all RepoLens errors."""


class RepositoryFetchError(RepoLensError):
    """Repository could not be fetched. Aborts an indexing run."""


class AuthenticationError(RepositoryFetchError):
    """Credentials were missing or rejected by the repository host."""


class RateLimitError(RepositoryFetchError):
    """Repository host rate limit exhausted."""

    def __init__(self, message: str, reset_at: int | None = None):
        super().__init__(message)
        self.reset_at = reset_at


class EmbeddingError(RepoLensError):
    """Embedding service failed or returned an unusable vector."""


class GenerationError(RepoLensError):
    """Generative text service failed."""


class VectorStoreError(RepoLensError):
    """Persistent store rejected a read or write."""


class JobNotFoundError(RepoLensError, KeyError):
    """No index job with the given id."""
