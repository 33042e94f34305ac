"""Chunker - splits source files into indexable fragments."""

import logging

from ..models.document import ChunkType, Fragment, RawFile
from ..strategies.boundaries import BoundaryDetector, detector_for

logger = logging.getLogger(__name__)


class CodeChunker:
    """Line-based chunker that prefers declaration and paragraph boundaries.

    Small files become a single ``whole`` fragment. Larger files are scanned
    line by line and cut after a line when the buffer grows past
    ``max_chunk_size``, when a declaration region returns to balance zero
    after more than ``MIN_DECLARATION_LINES`` lines, or on a blank line once
    the buffer is past ``SOFT_LIMIT_RATIO`` of the maximum.
    """

    MIN_DECLARATION_LINES = 10
    SOFT_LIMIT_RATIO = 0.7
    MIN_CHUNK_CHARS = 50

    def __init__(
        self,
        max_chunk_size: int = 2000,
        detectors: dict[str, BoundaryDetector] | None = None,
    ):
        """Initialize chunker.

        Args:
            max_chunk_size: Target maximum fragment size in characters.
            detectors: Extension -> boundary detector overrides.
        """
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be > 0")
        self._max_chunk_size = max_chunk_size
        self._detectors = detectors

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    def chunk(self, file: RawFile) -> list[Fragment]:
        """Split a file into fragments.

        Args:
            file: File to split.

        Returns:
            Fragments in file order; their line ranges cover every line.
        """
        lines = file.content.split("\n")

        if len(file.content) <= self._max_chunk_size:
            return [
                Fragment(
                    content=file.content,
                    source_file=file.path,
                    chunk_index=0,
                    total_chunks=1,
                    start_line=0,
                    end_line=len(lines) - 1,
                    chunk_type=ChunkType.WHOLE,
                )
            ]

        detector = detector_for(file.path, self._detectors)
        spans = self._split(lines, detector)

        fragments = [
            Fragment(
                content="\n".join(lines[start : end + 1]),
                source_file=file.path,
                chunk_index=i,
                total_chunks=len(spans),
                start_line=start,
                end_line=end,
                chunk_type=chunk_type,
            )
            for i, (start, end, chunk_type) in enumerate(spans)
        ]
        logger.debug(f"Chunked {file.path}: {len(lines)} lines -> {len(fragments)} fragments")
        return fragments

    def _split(
        self, lines: list[str], detector: BoundaryDetector
    ) -> list[tuple[int, int, ChunkType]]:
        """Compute (start_line, end_line, chunk_type) spans."""
        spans: list[tuple[int, int, ChunkType]] = []
        soft_limit = self._max_chunk_size * self.SOFT_LIMIT_RATIO

        start = 0
        # Length of lines[start:index + 1] joined with "\n"
        buffer_len = -1
        depth = 0
        in_declaration = False

        for index, line in enumerate(lines):
            buffer_len += len(line) + 1
            # Depth runs across the whole file, not per fragment
            depth += detector.brace_delta(line)

            if detector.is_declaration_start(line):
                in_declaration = True

            should_cut = (
                buffer_len > self._max_chunk_size
                or (
                    in_declaration
                    and depth == 0
                    and index - start + 1 > self.MIN_DECLARATION_LINES
                    and detector.can_close(line)
                )
                or (not line.strip() and buffer_len > soft_limit)
            )
            if not should_cut:
                continue

            if self._is_tiny(lines, start, index):
                # Too small to stand alone: keep accumulating
                continue

            chunk_type = ChunkType.FUNCTION if in_declaration else ChunkType.SECTION
            spans.append((start, index, chunk_type))
            start = index + 1
            buffer_len = -1
            in_declaration = False

        last = len(lines) - 1
        if start <= last:
            if spans and self._is_tiny(lines, start, last):
                prev_start, _, prev_type = spans[-1]
                spans[-1] = (prev_start, last, prev_type)
            else:
                chunk_type = ChunkType.FUNCTION if in_declaration else ChunkType.SECTION
                spans.append((start, last, chunk_type))

        return spans

    def _is_tiny(self, lines: list[str], start: int, end: int) -> bool:
        text = "\n".join(lines[start : end + 1]).strip()
        return len(text) <= self.MIN_CHUNK_CHARS
