"""RepoLens - question answering over indexed source repositories."""

__version__ = "0.1.0"
