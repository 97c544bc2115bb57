"""
Tests for FolderGate path resolution and policy checks.
"""

import os
import sys
import pytest
from pathlib import Path

from scriptorium.FolderGate import (
    AccessErrorKind,
    AccessPolicy,
    FolderAccessError,
    FolderRegistry,
    PathResolver,
    PolicyGate,
    compile_name_pattern,
    get_extension,
)
from scriptorium.FolderGate.security import check_relative_path, is_within_root

requires_symlinks = pytest.mark.skipif(
    sys.platform == "win32",
    reason="Symlinks need elevated rights on Windows"
)


@pytest.fixture
def resolver(sample_folder):
    return PathResolver(FolderRegistry({"docs": str(sample_folder)}))


class TestRelativePathChecks:
    """Tests for lexical validation of untrusted paths."""

    @pytest.mark.parametrize("relative", [
        "../secret.txt",
        "..",
        "a/../../b.txt",
        "..\\secret.txt",
        "sub\\..\\..\\secret.txt",
    ])
    def test_parent_escape_rejected(self, relative):
        """Paths climbing above the root should be rejected."""
        with pytest.raises(FolderAccessError) as exc_info:
            check_relative_path(relative)

        assert exc_info.value.kind == AccessErrorKind.PATH_ESCAPES_ROOT

    @pytest.mark.parametrize("relative", [
        "/etc/passwd",
        "\\windows\\system32",
    ])
    def test_absolute_paths_rejected(self, relative):
        """Absolute and backslash-rooted paths should be rejected."""
        with pytest.raises(FolderAccessError) as exc_info:
            check_relative_path(relative)

        assert exc_info.value.kind == AccessErrorKind.PATH_ESCAPES_ROOT

    @pytest.mark.skipif(os.name != "nt", reason="Drive letters only exist on Windows")
    @pytest.mark.parametrize("relative", ["C:\\secret.txt", "c:secret.txt"])
    def test_drive_qualified_rejected(self, relative):
        with pytest.raises(FolderAccessError) as exc_info:
            check_relative_path(relative)

        assert exc_info.value.kind == AccessErrorKind.PATH_ESCAPES_ROOT

    @pytest.mark.skipif(os.name == "nt", reason="Colons are legal in POSIX filenames")
    def test_colon_filename_accepted_on_posix(self):
        """A name like c:notes.txt is an ordinary filename outside Windows."""
        check_relative_path("c:notes.txt")

    @pytest.mark.parametrize("relative", ["", "bad\x00name.txt"])
    def test_invalid_input_rejected(self, relative):
        """Empty paths and NUL bytes are invalid arguments."""
        with pytest.raises(FolderAccessError) as exc_info:
            check_relative_path(relative)

        assert exc_info.value.kind == AccessErrorKind.INVALID_ARGUMENT

    @pytest.mark.parametrize("relative", [
        "notes.txt",
        "./notes.txt",
        "subfolder/../notes.txt",
        "subfolder/nested.txt",
        "..notes.txt",
    ])
    def test_contained_paths_accepted(self, relative):
        """Paths that stay below the root pass."""
        check_relative_path(relative)


class TestIsWithinRoot:
    """Tests for component-wise containment."""

    def test_root_contains_itself(self, sample_folder):
        root = str(sample_folder)
        assert is_within_root(root, root) is True

    def test_child_is_within(self, sample_folder):
        root = str(sample_folder)
        assert is_within_root(os.path.join(root, "notes.txt"), root) is True

    def test_sibling_with_shared_prefix_is_not_within(self, sample_folder, outside_folder):
        """'/tmp/x/docsX' must not count as inside '/tmp/x/docs'."""
        assert is_within_root(str(outside_folder / "secret.txt"), str(sample_folder)) is False


class TestPathResolver:
    """Tests for PathResolver."""

    def test_resolve_root(self, resolver, sample_folder):
        """Resolving without a relative path gives the canonical root."""
        resolved = resolver.resolve("docs")

        assert resolved.absolute == os.path.realpath(sample_folder)
        assert resolved.is_root is True
        assert resolved.folder_key == "docs"

    def test_resolve_file(self, resolver, sample_folder):
        resolved = resolver.resolve("docs", "notes.txt")

        assert resolved.absolute == os.path.realpath(sample_folder / "notes.txt")
        assert resolved.is_root is False

    def test_resolve_unknown_folder(self, resolver):
        with pytest.raises(FolderAccessError) as exc_info:
            resolver.resolve("nope")

        assert exc_info.value.kind == AccessErrorKind.UNKNOWN_FOLDER

    def test_resolve_traversal(self, resolver):
        with pytest.raises(FolderAccessError) as exc_info:
            resolver.resolve("docs", "../docsX/secret.txt")

        assert exc_info.value.kind == AccessErrorKind.PATH_ESCAPES_ROOT

    def test_escape_rejected_even_when_target_missing(self, resolver):
        """Escapes are rejected before any existence check."""
        with pytest.raises(FolderAccessError) as exc_info:
            resolver.resolve("docs", "../does/not/exist.txt")

        assert exc_info.value.kind == AccessErrorKind.PATH_ESCAPES_ROOT

    def test_missing_file_still_resolves(self, resolver, sample_folder):
        """A non-existent file inside the root is resolvable."""
        resolved = resolver.resolve("docs", "missing.txt")

        assert resolved.absolute == os.path.join(os.path.realpath(sample_folder), "missing.txt")

    def test_removed_root_is_not_found(self, temp_dir):
        """The root is re-checked on every resolve."""
        root = temp_dir / "vanishing"
        root.mkdir()
        resolver = PathResolver(FolderRegistry({"gone": str(root)}))
        root.rmdir()

        with pytest.raises(FolderAccessError) as exc_info:
            resolver.resolve("gone")

        assert exc_info.value.kind == AccessErrorKind.NOT_FOUND

    @requires_symlinks
    def test_symlink_escape_rejected(self, resolver, sample_folder, outside_folder):
        """A symlink pointing outside the root cannot be followed."""
        os.symlink(outside_folder / "secret.txt", sample_folder / "link.txt")

        with pytest.raises(FolderAccessError) as exc_info:
            resolver.resolve("docs", "link.txt")

        assert exc_info.value.kind == AccessErrorKind.PATH_ESCAPES_ROOT

    @requires_symlinks
    def test_symlink_inside_root_allowed(self, resolver, sample_folder):
        os.symlink(sample_folder / "notes.txt", sample_folder / "alias.txt")

        resolved = resolver.resolve("docs", "alias.txt")

        assert resolved.absolute == os.path.realpath(sample_folder / "notes.txt")

    def test_resolve_child(self, resolver, sample_folder):
        parent = resolver.resolve("docs")
        child = resolver.resolve_child(parent, "subfolder/nested.txt")

        assert child.absolute == os.path.realpath(sample_folder / "subfolder" / "nested.txt")
        assert child.root == parent.root


class TestPolicyGate:
    """Tests for extension and size policy."""

    def test_allowed_extension(self, policy):
        assert PolicyGate(policy).check_extension("notes.txt") is True

    def test_extension_is_case_insensitive(self, policy):
        assert PolicyGate(policy).check_extension("NOTES.TXT") is True

    def test_disallowed_extension(self, policy):
        assert PolicyGate(policy).check_extension("image.png") is False

    def test_no_extension_never_passes(self, policy):
        gate = PolicyGate(policy)

        assert gate.check_extension("Makefile") is False
        assert gate.check_extension(".txt") is False

    def test_empty_allowlist_denies_all(self):
        gate = PolicyGate(AccessPolicy(allowed_extensions=frozenset()))

        assert gate.check_extension("notes.txt") is False

    def test_size_limit_is_inclusive(self, policy):
        gate = PolicyGate(policy)

        assert gate.check_size(100) is True
        assert gate.check_size(101) is False

    def test_no_size_limit(self):
        gate = PolicyGate(AccessPolicy(allowed_extensions=frozenset({".txt"})))

        assert gate.check_size(10 ** 12) is True

    def test_zero_size_limit_allows_only_empty(self):
        gate = PolicyGate(AccessPolicy(allowed_extensions=frozenset({".txt"}), max_file_size=0))

        assert gate.check_size(0) is True
        assert gate.check_size(1) is False

    def test_get_extension(self):
        assert get_extension("Report.Final.MD") == ".md"
        assert get_extension("Makefile") == ""


class TestNamePattern:
    """Tests for listing globs."""

    def test_no_pattern(self):
        assert compile_name_pattern(None) is None
        assert compile_name_pattern("") is None

    def test_star_matches_any_run(self):
        matcher = compile_name_pattern("*.txt")

        assert matcher.search("notes.txt")
        assert matcher.search(".txt")
        assert not matcher.search("notes.md")

    def test_match_is_unanchored(self):
        """A pattern may match anywhere in the name."""
        assert compile_name_pattern("notes").search("my_notes.txt")
        assert compile_name_pattern("*.tx").search("notes.txt")
        assert compile_name_pattern("*.txt").search("notes.txt.bak")

    def test_case_insensitive(self):
        assert compile_name_pattern("*.TXT").search("notes.txt")

    def test_regex_metacharacters_are_literal(self):
        matcher = compile_name_pattern("report(1)+.txt")

        assert matcher.search("report(1)+.txt")
        assert not matcher.search("report11.txt")

    def test_question_mark_is_literal(self):
        matcher = compile_name_pattern("a?.txt")

        assert matcher.search("a?.txt")
        assert not matcher.search("ab.txt")

    def test_nul_byte_rejected(self):
        with pytest.raises(FolderAccessError) as exc_info:
            compile_name_pattern("*\x00.txt")

        assert exc_info.value.kind == AccessErrorKind.INVALID_ARGUMENT
