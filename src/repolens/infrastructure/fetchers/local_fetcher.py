"""Fetcher for repositories checked out on the local filesystem."""

import logging
import os
from pathlib import Path
from typing import Optional

from ...core.models.document import RawFile
from ...exceptions import RepositoryFetchError
from .filters import decode_text, should_skip

logger = logging.getLogger(__name__)


class LocalRepoFetcher:
    """Reads every text file under a directory."""

    def __init__(self, max_file_bytes: int = 1_000_000):
        self._max_file_bytes = max_file_bytes

    def fetch_files(
        self, ref: str, credentials: Optional[str] = None
    ) -> list[RawFile]:
        """Fetch files from a local folder.

        Args:
            ref: Path to the repository root.
            credentials: Ignored.

        Returns:
            Files with POSIX paths relative to the root, ordered by path.
        """
        root = Path(ref).expanduser()
        if not root.is_dir():
            raise RepositoryFetchError(f"Not a directory: {ref}")

        files: list[RawFile] = []
        for dirpath, dirnames, filenames in os.walk(root):
            # Prune hidden and vendored directories in place
            dirnames[:] = [
                d for d in dirnames
                if not d.startswith(".") and not should_skip(f"{d}/_")
            ]
            for filename in filenames:
                full_path = Path(dirpath) / filename
                rel_path = full_path.relative_to(root).as_posix()
                if filename.startswith("."):
                    continue
                if should_skip(rel_path):
                    continue

                try:
                    if full_path.stat().st_size > self._max_file_bytes:
                        logger.debug(f"Skip large file: {rel_path}")
                        continue
                    raw = full_path.read_bytes()
                except OSError as e:
                    logger.warning(f"Cannot read {rel_path}: {e}")
                    continue

                content = decode_text(raw)
                if content is None:
                    continue
                files.append(RawFile(path=rel_path, content=content))

        files.sort(key=lambda f: f.path)
        logger.info(f"Loaded {len(files)} files from {root}")
        return files
