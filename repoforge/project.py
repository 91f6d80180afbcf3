"""Repository snapshot and project profile types.

These are the shapes the rule engine consumes from its collaborators:
a file-tree snapshot produced by a directory scanner and a project
profile produced by a framework detector. ``RepoMap.from_directory`` is
a plain listing helper for callers that have no scanner of their own.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class FileKind(str, Enum):
    """Kind of a file-tree entry."""

    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class FileEntry:
    """A single entry in a repository snapshot.

    ``path`` is relative to the snapshot root and uses forward slashes.
    """

    path: str
    kind: FileKind = FileKind.FILE
    size: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"path": self.path, "kind": self.kind.value, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        """Create FileEntry from dictionary."""
        return cls(
            path=data["path"],
            kind=FileKind(data.get("kind", FileKind.FILE.value)),
            size=data.get("size"),
        )


@dataclass
class RepoMap:
    """Snapshot of a repository file tree."""

    root: str
    entries: list[FileEntry] = field(default_factory=list)
    total_files: int = 0
    total_directories: int = 0

    @property
    def file_paths(self) -> list[str]:
        """Paths of every entry, in scan order."""
        return [entry.path for entry in self.entries]

    @classmethod
    def from_paths(cls, root: str | Path, paths: list[str]) -> "RepoMap":
        """Build a snapshot of plain file entries from relative paths.

        Args:
            root: Repository root directory.
            paths: Relative file paths in scan order.

        Returns:
            RepoMap with one FILE entry per path.
        """
        entries = [FileEntry(path=p.replace("\\", "/")) for p in paths]
        return cls(root=str(root), entries=entries, total_files=len(entries))

    @classmethod
    def from_directory(cls, root: str | Path) -> "RepoMap":
        """List a directory tree into a snapshot.

        Entries are sorted per directory so the scan order is stable.
        Symlinks are recorded but not followed.

        Args:
            root: Directory to walk.

        Returns:
            RepoMap describing every entry under root.
        """
        root_path = Path(root)
        entries: list[FileEntry] = []
        total_files = 0
        total_dirs = 0

        for dirpath, dirnames, filenames in os.walk(root_path):
            dirnames.sort()
            current = Path(dirpath)

            for dirname in dirnames:
                full = current / dirname
                rel = full.relative_to(root_path).as_posix()
                if full.is_symlink():
                    entries.append(FileEntry(path=rel, kind=FileKind.SYMLINK))
                    continue
                entries.append(FileEntry(path=rel, kind=FileKind.DIRECTORY))
                total_dirs += 1

            for filename in sorted(filenames):
                full = current / filename
                rel = full.relative_to(root_path).as_posix()
                if full.is_symlink():
                    entries.append(FileEntry(path=rel, kind=FileKind.SYMLINK))
                    continue
                try:
                    size = full.stat().st_size
                except OSError:
                    size = None
                entries.append(FileEntry(path=rel, kind=FileKind.FILE, size=size))
                total_files += 1

        return cls(
            root=str(root_path),
            entries=entries,
            total_files=total_files,
            total_directories=total_dirs,
        )


@dataclass(frozen=True)
class ProjectProfile:
    """Detected characteristics of the project under audit."""

    type: str = "unknown"  # frontend, backend, fullstack, library, monorepo
    frameworks: tuple[str, ...] = ()  # e.g. ("react", "express")
    architecture: str = "unknown"  # mvc, layered, clean, modular, flat
    has_tests: bool = False
    has_typescript: bool = False
    has_build_config: bool = False
    package_manager: str = "unknown"
    confidence: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.type,
            "frameworks": list(self.frameworks),
            "architecture": self.architecture,
            "has_tests": self.has_tests,
            "has_typescript": self.has_typescript,
            "has_build_config": self.has_build_config,
            "package_manager": self.package_manager,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectProfile":
        """Create ProjectProfile from dictionary."""
        return cls(
            type=data.get("type", "unknown"),
            frameworks=tuple(data.get("frameworks", [])),
            architecture=data.get("architecture", "unknown"),
            has_tests=data.get("has_tests", False),
            has_typescript=data.get("has_typescript", False),
            has_build_config=data.get("has_build_config", False),
            package_manager=data.get("package_manager", "unknown"),
            confidence=data.get("confidence", 0.0),
        )


__all__ = ["FileEntry", "FileKind", "ProjectProfile", "RepoMap"]
