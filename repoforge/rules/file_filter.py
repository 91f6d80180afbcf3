"""File eligibility checks for the rule engine.

Decides which scanned files are evaluated: binary files (by extension or
content) and files under dependency, build or VCS directories are skipped.
"""

import posixpath
from pathlib import Path

# Bytes inspected when sniffing file content
CONTENT_SNIFF_BYTES = 8000

BINARY_EXTENSIONS = frozenset(
    {
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg", ".bmp", ".webp", ".tiff", ".tif",
        # Fonts
        ".woff", ".woff2", ".ttf", ".eot", ".otf",
        # Archives
        ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2", ".xz",
        # Executables and libraries
        ".exe", ".dll", ".so", ".dylib", ".bin",
        # Documents
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        # Media
        ".mp3", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".mkv", ".wav", ".ogg",
        # Compiled artifacts
        ".class", ".jar", ".war", ".ear", ".pyc", ".pyo", ".o", ".a",
    }
)  # fmt: skip

SKIP_DIRECTORIES = frozenset(
    {
        "node_modules",
        "dist",
        "build",
        ".next",
        ".nuxt",
        "out",
        "coverage",
        ".git",
        ".svn",
        ".hg",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        "vendor",
        "target",
        "bin",
        "obj",
    }
)


def _normalize(file_path: str | Path) -> str:
    return str(file_path).replace("\\", "/")


def is_binary_by_extension(file_path: str | Path) -> bool:
    """Check if a file is binary based on its extension.

    A dotfile whose whole name is a binary extension (e.g. ``.pdf``)
    also counts.
    """
    normalized = _normalize(file_path)
    basename = posixpath.basename(normalized)

    # The basename itself may be the extension, e.g. "docs/.pdf"
    if basename.startswith(".") and basename.rfind(".") == 0:
        if basename.lower() in BINARY_EXTENSIONS:
            return True

    ext = posixpath.splitext(normalized)[1].lower()
    return ext in BINARY_EXTENSIONS


def contains_skip_directory(file_path: str | Path) -> bool:
    """Check if any segment of the path is an excluded directory."""
    parts = [part for part in _normalize(file_path).split("/") if part]
    return any(part in SKIP_DIRECTORIES for part in parts)


def is_binary_by_content(file_path: str | Path) -> bool:
    """Check if a file looks binary by sniffing for a zero byte.

    Only the first ``CONTENT_SNIFF_BYTES`` bytes are read. Files that
    cannot be read are treated as binary so they get excluded.
    """
    try:
        with open(file_path, "rb") as f:
            chunk = f.read(CONTENT_SNIFF_BYTES)
    except OSError:
        return True
    return b"\x00" in chunk


def should_exclude_file(
    file_path: str | Path, full_path: str | Path | None = None
) -> bool:
    """Check if a file should be excluded from rule evaluation.

    Checks run cheapest first and stop at the first match: extension,
    then directory membership, then content (only when ``full_path`` is
    given).

    Args:
        file_path: Repository-relative path.
        full_path: Optional on-disk path used for content sniffing.

    Returns:
        True if the file must not be evaluated.
    """
    if is_binary_by_extension(file_path):
        return True

    if contains_skip_directory(file_path):
        return True

    if full_path is not None and is_binary_by_content(full_path):
        return True

    return False


def get_binary_extensions() -> set[str]:
    """Get a copy of the binary extension set."""
    return set(BINARY_EXTENSIONS)


def get_skip_directories() -> set[str]:
    """Get a copy of the excluded directory set."""
    return set(SKIP_DIRECTORIES)


__all__ = [
    "BINARY_EXTENSIONS",
    "CONTENT_SNIFF_BYTES",
    "SKIP_DIRECTORIES",
    "contains_skip_directory",
    "get_binary_extensions",
    "get_skip_directories",
    "is_binary_by_content",
    "is_binary_by_extension",
    "should_exclude_file",
]
