"""Commit domain models."""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Commit:
    """Repository commit with its AI summary."""
    hash: str
    message: str
    author_name: str
    author_avatar: str
    date: datetime
    summary: str = ""  # empty until summarized, or if summarizing failed

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0]
