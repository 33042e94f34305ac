"""File selection rules shared by repository fetchers."""

from pathlib import PurePosixPath

IGNORED_FILES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    ".gitignore",
    ".env.example",
}

SKIPPED_DIRS = {
    ".git",
    ".svn",
    ".hg",
    "node_modules",
    "__pycache__",
    "venv",
    ".venv",
    "dist",
    "build",
    ".next",
    ".tox",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
}

BINARY_EXTENSIONS = {
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff",
    # Documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    # Archives
    ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2", ".xz",
    # Executables
    ".exe", ".dll", ".so", ".dylib", ".bin",
    # Media
    ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac", ".mkv", ".webm",
    # Compiled
    ".pyc", ".pyo", ".class", ".o", ".obj", ".wasm",
    # Fonts
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    # Other
    ".db", ".sqlite", ".sqlite3",
}


def is_binary_extension(path: str) -> bool:
    """Check if file extension indicates binary content."""
    return PurePosixPath(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(content: bytes, sample_size: int = 8192) -> bool:
    """Detect binary content by null bytes and non-text ratio."""
    if not content:
        return False

    sample = content[:sample_size]

    if b"\x00" in sample:
        return True

    text_chars = set(range(32, 127)) | {9, 10, 13}
    non_text = sum(1 for byte in sample if byte not in text_chars)

    # UTF-8 text has high bytes too; only flag clearly non-text samples
    return (non_text / len(sample)) > 0.30 and not _is_utf8(sample)


def _is_utf8(sample: bytes) -> bool:
    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte character cut by the sample boundary is still text
        return e.start >= len(sample) - 3
    return True


def should_skip(path: str) -> bool:
    """Check if a repository path should not be indexed."""
    parts = PurePosixPath(path).parts
    if not parts:
        return True
    if parts[-1] in IGNORED_FILES:
        return True
    if any(part in SKIPPED_DIRS for part in parts[:-1]):
        return True
    return is_binary_extension(path)


def decode_text(content: bytes) -> str | None:
    """Decode file bytes, or None for binary or blank files."""
    if is_binary_content(content):
        return None
    text = content.decode("utf-8", errors="replace")
    return text if text.strip() else None
