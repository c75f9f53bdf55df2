"""Tests for content diff against the summary cache (pure, zero I/O)."""

import hashlib

from panelflow.domain.entities.summary_cache import FileSummaryEntry, SourceFile, SummaryCache
from panelflow.domain.services.content_diff import diff_against_cache, hash_content, relative_path

FOLDER = "/work/project"


def cache_with(**files: tuple[str, str]) -> SummaryCache:
    """files: relative path -> (content, summary)."""
    return SummaryCache(
        folder_path=FOLDER,
        files={
            path.replace("__", "/").replace("_dot_", "."): FileSummaryEntry(
                content_hash=hash_content(content),
                summary=summary,
                summarized_at=1,
            )
            for path, (content, summary) in files.items()
        },
        reduced_summary="overview",
        reduced_at=1,
    )


class TestHashContent:
    def test_sha256_hex(self):
        assert hash_content("") == hashlib.sha256(b"").hexdigest()
        assert hash_content("héllo") == hashlib.sha256("héllo".encode("utf-8")).hexdigest()
        assert len(hash_content("x")) == 64


class TestRelativePath:
    def test_strips_folder_prefix(self):
        assert relative_path("/work/project/src/a.py", FOLDER) == "src/a.py"
        assert relative_path("/work/project/src/a.py", FOLDER + "/") == "src/a.py"

    def test_windows_separator(self):
        assert relative_path("C:\\repo\\main.py", "C:\\repo") == "main.py"

    def test_sibling_prefix_not_stripped(self):
        assert relative_path("/work/project2/a.py", FOLDER) == "/work/project2/a.py"

    def test_already_relative(self):
        assert relative_path("src/a.py", FOLDER) == "src/a.py"


class TestDiffAgainstCache:
    def test_no_cache_everything_changed(self):
        files = [SourceFile(path=f"{FOLDER}/a.py", content="a"), SourceFile(path=f"{FOLDER}/b.py", content="b")]
        diff = diff_against_cache(None, files, FOLDER)
        assert [c.relative_path for c in diff.changed] == ["a.py", "b.py"]
        assert diff.unchanged == []
        assert diff.removed == []
        assert diff.order == ["a.py", "b.py"]
        assert diff.is_full_hit is False

    def test_same_hash_is_unchanged(self):
        cache = cache_with(a_dot_py=("a", "summary of a"))
        diff = diff_against_cache(cache, [SourceFile(path=f"{FOLDER}/a.py", content="a")], FOLDER)
        assert diff.changed == []
        assert diff.unchanged[0].relative_path == "a.py"
        assert diff.unchanged[0].summary == "summary of a"
        assert diff.is_full_hit is True

    def test_modified_content_is_changed(self):
        cache = cache_with(a_dot_py=("a", "summary of a"))
        diff = diff_against_cache(cache, [SourceFile(path=f"{FOLDER}/a.py", content="a2")], FOLDER)
        assert [c.content for c in diff.changed] == ["a2"]
        assert diff.unchanged == []

    def test_empty_cached_summary_is_changed(self):
        cache = cache_with(a_dot_py=("a", ""))
        diff = diff_against_cache(cache, [SourceFile(path="a.py", content="a")], FOLDER)
        assert [c.relative_path for c in diff.changed] == ["a.py"]

    def test_missing_files_reported_as_removed(self):
        cache = cache_with(a_dot_py=("a", "A"), src__b_dot_py=("b", "B"))
        diff = diff_against_cache(cache, [SourceFile(path=f"{FOLDER}/a.py", content="a")], FOLDER)
        assert diff.removed == ["src/b.py"]
        assert diff.is_full_hit is False
        # Reported only, cache untouched
        assert "src/b.py" in cache.files

    def test_every_current_file_classified_once(self):
        cache = cache_with(a_dot_py=("a", "A"), b_dot_py=("b", "B"))
        files = [
            SourceFile(path=f"{FOLDER}/a.py", content="a"),
            SourceFile(path=f"{FOLDER}/b.py", content="changed"),
            SourceFile(path=f"{FOLDER}/c.py", content="new"),
        ]
        diff = diff_against_cache(cache, files, FOLDER)
        classified = [u.relative_path for u in diff.unchanged] + [c.relative_path for c in diff.changed]
        assert sorted(classified) == ["a.py", "b.py", "c.py"]

    def test_duplicate_relative_paths_collapse_to_last(self):
        files = [
            SourceFile(path="a.py", content="tiny"),
            SourceFile(path=f"{FOLDER}/b.py", content="b"),
            SourceFile(path=f"{FOLDER}/a.py", content="big"),
        ]
        diff = diff_against_cache(None, files, FOLDER)
        assert diff.order == ["a.py", "b.py"]
        assert [(c.relative_path, c.content) for c in diff.changed] == [("a.py", "big"), ("b.py", "b")]
