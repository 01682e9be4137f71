from __future__ import annotations
"""Keyed, lazily expandable tables of S3 entries."""
from typing import Callable, Iterable, Iterator, Optional

from .models import Resource, S3Entry


class NavigationTable:
    """Ordered entries keyed by name.

    ``name_column`` and ``content_column`` tell a consumer which attribute
    carries the display name and which one expands into child contents.
    """

    def __init__(
        self,
        entries: Iterable[S3Entry] = (),
        *,
        name_column: str = "name",
        content_column: str = "contents",
        next_page: Optional[Callable[[], Resource]] = None,
    ):
        self.name_column = name_column
        self.content_column = content_column
        self.next_page = next_page
        self._entries: dict[str, S3Entry] = {}
        for entry in entries:
            self._entries[getattr(entry, name_column)] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[S3Entry]:
        return iter(self._entries.values())

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> S3Entry:
        return self._entries[name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NavigationTable):
            return NotImplemented
        return (
            self.name_column == other.name_column
            and self.content_column == other.content_column
            and list(self._entries.values()) == list(other._entries.values())
        )

    def __repr__(self) -> str:
        return f"NavigationTable({self.names()!r})"

    def names(self) -> list[str]:
        return list(self._entries)

    def entries(self) -> list[S3Entry]:
        return list(self._entries.values())

    def expand(self, name: str) -> Resource:
        """Fetch the contents behind ``name``."""

        provider = getattr(self[name], self.content_column)
        return provider()


def build_navigation_table(
    entries: Iterable[S3Entry],
    *,
    name_column: str = "name",
    content_column: str = "contents",
    next_page: Optional[Callable[[], Resource]] = None,
) -> NavigationTable:
    """Wrap ``entries`` in a table with one entry per distinct name.

    Later entries replace earlier ones with the same name but keep the
    position of the first occurrence.
    """

    return NavigationTable(
        entries,
        name_column=name_column,
        content_column=content_column,
        next_page=next_page,
    )
