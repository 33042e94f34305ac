"""Repository fetcher implementations."""
from .github_fetcher import GitHubRepoFetcher
from .local_fetcher import LocalRepoFetcher
from .routing_fetcher import RoutingRepoFetcher

__all__ = ["GitHubRepoFetcher", "LocalRepoFetcher", "RoutingRepoFetcher"]
