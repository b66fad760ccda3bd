"""Tests for scanner.py -- extension filter, dedup, walks, orphan cleanup."""

from pathlib import Path

from jxr_autocleaner.scanner import (
    cleanup_orphan_temps,
    converted_path,
    find_pending,
    is_source_file,
    needs_conversion,
    temp_output_path,
)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00")
    return path


class TestPaths:
    def test_is_source_file_case_insensitive(self):
        assert is_source_file(Path("a.jxr"))
        assert is_source_file(Path("a.JXR"))
        assert not is_source_file(Path("a.jpg"))
        assert not is_source_file(Path("jxr"))

    def test_converted_path(self):
        assert converted_path(Path("/v/shot.jxr")) == Path("/v/shot.jpg")

    def test_temp_output_path(self):
        assert temp_output_path(Path("/v/shot.jxr")) == Path("/v/shot.tmp.jpg")

    def test_custom_extensions(self):
        assert converted_path(Path("a.src"), ".out") == Path("a.out")
        assert temp_output_path(Path("a.src"), ".out", ".part") == Path("a.part.out")


class TestNeedsConversion:
    def test_without_output(self, tmp_path):
        src = _touch(tmp_path / "a.jxr")
        assert needs_conversion(src)

    def test_with_output(self, tmp_path):
        src = _touch(tmp_path / "a.jxr")
        _touch(tmp_path / "a.jpg")
        assert not needs_conversion(src)

    def test_wrong_extension(self, tmp_path):
        assert not needs_conversion(_touch(tmp_path / "a.png"))


class TestFindPending:
    def test_dedup_on_rescan(self, tmp_path):
        _touch(tmp_path / "a.jxr")
        _touch(tmp_path / "a.jpg")
        b = _touch(tmp_path / "b.jxr")
        assert find_pending(tmp_path) == [b]

    def test_recursive(self, tmp_path):
        a = _touch(tmp_path / "Game A" / "one.jxr")
        b = _touch(tmp_path / "Game B" / "deep" / "two.JXR")
        _touch(tmp_path / "Game B" / "clip.mp4")
        assert find_pending(tmp_path) == sorted([a, b])

    def test_custom_extensions(self, tmp_path):
        _touch(tmp_path / "a.src")
        _touch(tmp_path / "a.out")
        b = _touch(tmp_path / "b.src")
        assert find_pending(tmp_path, ".src", ".out") == [b]

    def test_missing_root_is_empty(self, tmp_path):
        assert find_pending(tmp_path / "nope") == []

    def test_directory_named_like_source_ignored(self, tmp_path):
        (tmp_path / "folder.jxr").mkdir()
        assert find_pending(tmp_path) == []


class TestCleanupOrphanTemps:
    def test_removes_only_temp_outputs(self, tmp_path):
        orphan = _touch(tmp_path / "sub" / "shot.tmp.jpg")
        keep_jpg = _touch(tmp_path / "shot.jpg")
        keep_src = _touch(tmp_path / "other.jxr")
        removed = cleanup_orphan_temps(tmp_path)
        assert removed == 1
        assert not orphan.exists()
        assert keep_jpg.exists()
        assert keep_src.exists()

    def test_uppercase_extension(self, tmp_path):
        orphan = _touch(tmp_path / "shot.tmp.JPG")
        assert cleanup_orphan_temps(tmp_path) == 1
        assert not orphan.exists()

    def test_nothing_to_clean(self, tmp_path):
        _touch(tmp_path / "a.jpg")
        assert cleanup_orphan_temps(tmp_path) == 0
