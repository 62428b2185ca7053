"""
Tests for ArtifactStore - lookup, persistence and download resolution.
"""

import os
from datetime import datetime
from pathlib import Path

import pytest

from toolgen.core.errors import ArtifactWriteError
from toolgen.services.artifact_store import ArtifactStore, count_matches, qualifies


STORED_HTML = "<!DOCTYPE html><html><body>stored tool</body></html>"


def write_artifact(directory: Path, name: str, content: str = STORED_HTML, mtime: float = None) -> Path:
    path = directory / name
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


class TestMatchingRule:
    """Tests for count_matches() and qualifies()."""

    def test_count_is_case_insensitive(self):
        assert count_matches("Pomodoro_Timer_20250101_000000.html", ["pomodoro", "TIMER"]) == 2

    def test_zero_matches_never_qualify(self):
        assert qualifies(0, 0) is False
        assert qualifies(0, 1) is False

    def test_half_of_keywords_qualifies(self):
        assert qualifies(2, 4) is True
        assert qualifies(2, 5) is True

    def test_below_half_does_not_qualify(self):
        assert qualifies(1, 4) is False

    def test_full_match_always_qualifies(self):
        for n in range(1, 6):
            assert qualifies(n, n) is True


class TestFind:
    """Tests for ArtifactStore.find() and best_match()."""

    def test_empty_directory_is_a_miss(self, store):
        assert store.find("pomodoro timer") is None

    def test_missing_directory_is_a_miss(self, tmp_path):
        assert ArtifactStore(tmp_path / "nowhere").find("pomodoro timer") is None

    def test_request_without_keywords_never_matches(self, store, output_dir):
        write_artifact(output_dir, "tool_20250101_000000.html")
        assert store.find("生成一个工具") is None
        assert store.find("a") is None

    def test_returns_matching_content(self, store, output_dir):
        write_artifact(output_dir, "pomodoro_timer_20250101_000000.html", "<html>stored</html>")
        assert store.find("a pomodoro timer") == "<html>stored</html>"

    def test_full_match_beats_newer_partial_match(self, store, output_dir):
        full = write_artifact(output_dir, "pomodoro_timer_20250101_000000.html", mtime=1_000_000)
        write_artifact(output_dir, "pomodoro_clock_20250102_000000.html", mtime=2_000_000)

        assert store.best_match("pomodoro timer") == full

    def test_tie_broken_by_latest_modification(self, store, output_dir):
        write_artifact(output_dir, "a_pomodoro_timer_20250101_000000.html", mtime=2_000_000)
        newer = write_artifact(output_dir, "b_pomodoro_timer_20250101_000000.html", mtime=3_000_000)

        assert store.best_match("pomodoro timer") == newer

    def test_insufficient_overlap_is_a_miss(self, store, output_dir):
        write_artifact(output_dir, "loan_calc_20250101_000000.html")
        assert store.find("loan mortgage amortization schedule") is None

    def test_non_html_files_ignored(self, store, output_dir):
        write_artifact(output_dir, "pomodoro_timer_notes.txt")
        assert store.find("pomodoro timer") is None

    def test_read_failure_is_a_miss(self, store, output_dir, monkeypatch):
        write_artifact(output_dir, "pomodoro_timer_20250101_000000.html")

        def broken_read(self, *args, **kwargs):
            raise OSError("disk on fire")

        monkeypatch.setattr(Path, "read_text", broken_read)
        assert store.find("pomodoro timer") is None


class TestSave:
    """Tests for ArtifactStore.save()."""

    def test_save_uses_naming_contract(self, store, output_dir, valid_html):
        path = store.save("unit converter", valid_html, now=datetime(2025, 1, 2, 3, 4, 5))

        assert path == output_dir / "unit_converter_20250102_030405.html"
        assert path.read_text(encoding="utf-8") == valid_html

    def test_save_creates_output_directory(self, tmp_path, valid_html):
        store = ArtifactStore(tmp_path / "new" / "dir")
        path = store.save("unit converter", valid_html)
        assert path.is_file()

    def test_saved_artifact_is_found_again(self, store, valid_html):
        store.save("生成一个番茄钟倒计时工具", valid_html)
        assert store.find("生成一个番茄钟倒计时工具") == valid_html

    @pytest.mark.parametrize("request_text", [
        "帮我做一个番茄钟",
        "build a very fancy pomodoro timer app",
        "Make a Markdown to HTML converter with live preview",
    ])
    def test_saved_artifact_is_found_for_any_wording(self, store, valid_html, request_text):
        store.save(request_text, valid_html)
        assert store.find(request_text) == valid_html

    def test_empty_content_rejected(self, store):
        with pytest.raises(ArtifactWriteError):
            store.save("unit converter", "")

    def test_unwritable_directory_raises(self, tmp_path, valid_html):
        blocker = tmp_path / "output"
        blocker.write_text("not a directory")

        with pytest.raises(ArtifactWriteError):
            ArtifactStore(blocker).save("unit converter", valid_html)


class TestListAndResolve:
    """Tests for list_names() and resolve()."""

    def test_list_names_sorted(self, store, output_dir):
        write_artifact(output_dir, "b_20250101_000000.html")
        write_artifact(output_dir, "a_20250101_000000.html")
        write_artifact(output_dir, "readme.md")

        assert store.list_names() == ["a_20250101_000000.html", "b_20250101_000000.html"]

    def test_list_names_missing_directory(self, tmp_path):
        assert ArtifactStore(tmp_path / "nowhere").list_names() == []

    def test_resolve_appends_extension(self, store, output_dir):
        path = write_artifact(output_dir, "calc_20250101_000000.html")
        assert store.resolve("calc_20250101_000000") == path
        assert store.resolve("calc_20250101_000000.html") == path

    def test_resolve_missing(self, store):
        assert store.resolve("nothing_here.html") is None

    def test_resolve_rejects_traversal(self, store, tmp_path):
        write_artifact(tmp_path, "secret.html")
        assert store.resolve("../secret.html") is None
        assert store.resolve("..") is None

    def test_resolve_rejects_dotfiles(self, store, output_dir):
        write_artifact(output_dir, ".hidden.html")
        assert store.resolve(".hidden.html") is None
