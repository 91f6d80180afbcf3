"""
Unit tests for file eligibility checks.
"""

import pytest

from repoforge.rules.file_filter import (
    BINARY_EXTENSIONS,
    CONTENT_SNIFF_BYTES,
    SKIP_DIRECTORIES,
    contains_skip_directory,
    get_binary_extensions,
    get_skip_directories,
    is_binary_by_content,
    is_binary_by_extension,
    should_exclude_file,
)


class TestBinaryByExtension:
    """Tests for is_binary_by_extension."""

    @pytest.mark.parametrize(
        "path",
        ["logo.png", "assets/photo.JPG", "dist.tar.gz", "lib/native.so", "a/b/Main.class"],
    )
    def test_binary_extensions(self, path):
        """Test known binary extensions are detected case-insensitively."""
        assert is_binary_by_extension(path) is True

    @pytest.mark.parametrize("path", ["src/app.ts", "README.md", "Makefile", ".env"])
    def test_text_files(self, path):
        """Test text files are not flagged."""
        assert is_binary_by_extension(path) is False

    def test_basename_is_extension(self):
        """Test a dotfile named after a binary extension is flagged."""
        assert is_binary_by_extension("docs/.pdf") is True

    def test_backslashes_normalized(self):
        """Test Windows-style separators are handled."""
        assert is_binary_by_extension("assets\\icons\\app.ico") is True


class TestSkipDirectories:
    """Tests for contains_skip_directory."""

    @pytest.mark.parametrize(
        "path",
        [
            "node_modules/react/index.js",
            "packages/web/dist/bundle.js",
            ".git/config",
            "src\\__pycache__\\mod.py",
            "app/build/output.txt",
        ],
    )
    def test_excluded_segments(self, path):
        """Test any excluded segment matches."""
        assert contains_skip_directory(path) is True

    @pytest.mark.parametrize("path", ["src/builder.py", "distance/calc.py", "src/app.ts"])
    def test_partial_names_not_excluded(self, path):
        """Test only whole segments count."""
        assert contains_skip_directory(path) is False


class TestBinaryByContent:
    """Tests for is_binary_by_content."""

    def test_text_file(self, tmp_path):
        """Test plain text is not binary."""
        path = tmp_path / "a.txt"
        path.write_text("hello world\n")
        assert is_binary_by_content(path) is False

    def test_zero_byte_marks_binary(self, tmp_path):
        """Test a zero byte in the sniffed prefix marks the file binary."""
        path = tmp_path / "blob.dat"
        path.write_bytes(b"abc\x00def")
        assert is_binary_by_content(path) is True

    def test_only_prefix_is_inspected(self, tmp_path):
        """Test a zero byte past the sniff window is ignored."""
        path = tmp_path / "late.dat"
        path.write_bytes(b"a" * CONTENT_SNIFF_BYTES + b"\x00")
        assert is_binary_by_content(path) is False

    def test_unreadable_counts_as_binary(self, tmp_path):
        """Test missing files are excluded."""
        assert is_binary_by_content(tmp_path / "missing.txt") is True


class TestShouldExcludeFile:
    """Tests for should_exclude_file."""

    def test_extension_check(self):
        assert should_exclude_file("img/logo.png") is True

    def test_directory_check(self):
        assert should_exclude_file("node_modules/pkg/index.js") is True

    def test_eligible_file(self):
        assert should_exclude_file("src/index.js") is False

    def test_content_sniff_only_with_full_path(self, tmp_path):
        """Test content is only inspected when a full path is given."""
        path = tmp_path / "data.txt"
        path.write_bytes(b"\x00\x01\x02")
        assert should_exclude_file("data.txt") is False
        assert should_exclude_file("data.txt", path) is True

    def test_extension_short_circuits_content(self, tmp_path):
        """Test cheaper checks run first, so the file is never opened."""
        assert should_exclude_file("logo.png", tmp_path / "missing.png") is True


class TestAccessors:
    """Tests for the set accessors."""

    def test_returns_copies(self):
        """Test mutating the returned sets does not affect the filter."""
        extensions = get_binary_extensions()
        directories = get_skip_directories()
        extensions.add(".py")
        directories.add("src")

        assert ".py" not in BINARY_EXTENSIONS
        assert "src" not in SKIP_DIRECTORIES
        assert should_exclude_file("src/app.py") is False
