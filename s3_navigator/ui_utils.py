from __future__ import annotations
"""UI-agnostic helpers for formatting navigation tables."""
from datetime import datetime

from .navigation import NavigationTable

TABLE_HEADERS = ("Name", "Last modified", "Size", "Storage class")


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    suffixes = ["B", "KB", "MB", "GB", "TB"]
    value = float(max(size, 0))
    for suffix in suffixes:
        if value < 1024 or suffix == suffixes[-1]:
            return f"{value:.1f} {suffix}" if suffix != "B" else f"{int(value)} {suffix}"
        value /= 1024
    return f"{size} B"


def format_last_modified(last_modified: object) -> str:
    if not last_modified:
        return "-"
    if isinstance(last_modified, datetime):
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or last_modified.isoformat()
    try:
        return last_modified.strftime("%Y-%m-%d %H:%M:%S %Z").strip() or str(last_modified)
    except AttributeError:
        return str(last_modified)


def format_table_rows(table: NavigationTable) -> list[tuple[str, str, str, str]]:
    rows = []
    for entry in table:
        name = getattr(entry, table.name_column)
        if entry.is_prefix:
            rows.append((name, "-", "<prefix>", "-"))
            continue
        rows.append(
            (
                name,
                format_last_modified(entry.last_modified),
                format_size(entry.size),
                entry.storage_class or "-",
            )
        )
    return rows


def render_table(table: NavigationTable) -> str:
    """Lay out a table as fixed-width text columns."""

    rows = [TABLE_HEADERS, *format_table_rows(table)]
    widths = [max(len(row[idx]) for row in rows) for idx in range(len(TABLE_HEADERS))]
    lines = ["  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows]
    if table.next_page is not None:
        lines.append("(more results available)")
    return "\n".join(lines)
