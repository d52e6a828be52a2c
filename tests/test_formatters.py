"""Tests for remote_files.formatters."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from remote_files.formatters import format_size, render_entries, render_profiles
from remote_files.models import (
    Configuration,
    EntryMode,
    GcsConfig,
    S3Config,
    StatEntry,
)
from remote_files.url_path import UrlDirPath


def _render_to_str(rich_obj) -> str:
    """Render a Rich renderable to a plain string."""
    console = Console(force_terminal=False, width=200)
    with console.capture() as cap:
        console.print(rich_obj)
    return cap.get()


ENTRIES = [
    StatEntry("reports/", "", None, EntryMode.DIR),
    StatEntry("a.csv", "text/csv", 2048, EntryMode.FILE),
]


class TestFormatSize:
    def test_none(self):
        assert format_size(None) == ""

    def test_bytes(self):
        assert format_size(0) == "0 B"
        assert format_size(1023) == "1023 B"

    def test_binary_units(self):
        assert format_size(1024) == "1.0 KiB"
        assert format_size(1536) == "1.5 KiB"
        assert format_size(5 * 1024**3) == "5.0 GiB"

    def test_largest_unit_caps(self):
        assert format_size(2048 * 1024**5) == "2048.0 PiB"


class TestRenderProfiles:
    def test_returns_table(self):
        assert isinstance(render_profiles(Configuration(), None), Table)

    def test_marks_current(self):
        config = Configuration(
            buckets={
                "docs": S3Config(name="docs-bucket", prefix=UrlDirPath.parse("team")),
                "media": GcsConfig(name="media-bucket"),
            }
        )
        output = _render_to_str(render_profiles(config, "media"))
        lines = output.splitlines()
        media_line = next(line for line in lines if "media-bucket" in line)
        docs_line = next(line for line in lines if "docs-bucket" in line)
        assert "👉" in media_line
        assert "👉" not in docs_line
        assert "docs-bucket/team/" in docs_line
        assert "gcs" in media_line


class TestRenderEntries:
    def test_rows(self):
        output = _render_to_str(render_entries(ENTRIES, title="/"))
        assert "reports/" in output
        assert "text/csv" in output
        assert "2.0 KiB" in output
        assert "directory" in output
        assert "..." not in output

    def test_rows_are_numbered_from_one(self):
        table = render_entries(ENTRIES, title="/")
        assert list(table.columns[0].cells) == ["1", "2"]

    def test_truncated_adds_ellipsis_row(self):
        table = render_entries(ENTRIES, title="/", truncated=True)
        assert table.row_count == 3
        assert list(table.columns[0].cells)[-1] == "..."
