"""Rich-based formatters for rf output."""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from remote_files.models import Bucket, Configuration, EntryMode, StatEntry

_CURRENT_MARKER = "👉"
_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")


def format_size(size: int | None) -> str:
    """Format a byte count in binary units, e.g. ``1.5 KiB``.  ``None`` renders empty."""
    if size is None:
        return ""
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    raise AssertionError("unreachable")  # pragma: no cover


def _bucket_location(bucket: Bucket) -> str:
    prefix = str(bucket.prefix) if bucket.prefix is not None else "/"
    return f"{bucket.name}{prefix}"


def render_profiles(configuration: Configuration, current: str | None) -> Table:
    """Render every profile, marking the current one.

    Args:
        configuration: All known profiles.
        current:       Name of the selected profile, if any.

    Returns:
        A :class:`rich.table.Table`.
    """
    table = Table(title="Profiles", show_lines=False)
    table.add_column("", width=2)
    table.add_column("Name", style="bold cyan")
    table.add_column("Type", style="dim")
    table.add_column("Bucket")

    for name in sorted(configuration.buckets):
        bucket = configuration.buckets[name]
        marker = _CURRENT_MARKER if name == current else ""
        table.add_row(marker, name, bucket.kind.value, _bucket_location(bucket))

    return table


def _entry_name(entry: StatEntry) -> Text:
    if entry.kind is EntryMode.DIR:
        return Text(entry.name, style="bold blue")
    return Text(entry.name, style="green")


def render_entries(entries: list[StatEntry], title: str, truncated: bool = False) -> Table:
    """Render one listing page.

    Rows are numbered from 1 within the page; those numbers are what the
    interactive prompt accepts.  When *truncated* is set a final ``...`` row
    signals that more entries may exist beyond this preview.
    """
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name")
    table.add_column("Content-Type", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Type", style="dim")

    for index, entry in enumerate(entries, start=1):
        table.add_row(
            str(index),
            _entry_name(entry),
            entry.content_type,
            format_size(entry.content_length),
            entry.kind.value,
        )

    if truncated:
        table.add_row("...", "", "", "", "")

    return table
