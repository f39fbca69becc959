"""Tags attached to books, series and authors, and book ratings."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Iterable

from shelfkit.booktree import ItemType, TreeItem
from shelfkit.catalog import Library

_TAG_TABLES = ("book", "seria", "author")
MAX_RATING = 5


@dataclass(frozen=True)
class TagInfo:
    """A tag defined in the library database, with its icon images."""

    tag_id: int
    name: str
    icon_id: int = 0
    light_icon: bytes = b""
    dark_icon: bytes = b""

    def icon(self, dark=False) -> bytes:
        """Return the icon for the theme; dark falls back to the light image."""
        if dark and self.dark_icon:
            return self.dark_icon
        return self.light_icon


def is_latin1_name(name):
    """Check that a tag name holds only 7-bit characters.

    Such names are the built-in ones that the interface may translate.
    """
    return all(ord(char) <= 127 for char in name)


def _blob(value) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode()
    return bytes(value)


class TagStore:
    """Reads and changes tags and ratings in a library database."""

    def __init__(self, connection):
        self.connection = connection

    def _icons(self) -> dict[int, tuple[bytes, bytes]]:
        rows = self.connection.execute("SELECT id, light_theme, dark_theme FROM icon")
        return {int(icon_id): (_blob(light), _blob(dark)) for icon_id, light, dark in rows}

    def load_tags(self):
        """Return every tag with its trimmed name and icon images."""
        icons = self._icons()
        tags = []
        for tag_id, name, icon_id in self.connection.execute("SELECT id, name, id_icon FROM tag"):
            icon_key = int(icon_id) if icon_id is not None else 0
            light, dark = icons.get(icon_key, (b"", b""))
            tags.append(
                TagInfo(int(tag_id), (name or "").strip(), icon_key, light, dark)
            )
        return tags

    def set_tag(self, tag_id, item_id, tag_ids, table, enable):
        """Attach a tag to an item or remove it.

        ``table`` is ``"book"``, ``"seria"`` or ``"author"``; ``tag_ids`` is
        the item's in-memory tag list and is updated to match.
        """
        if table not in _TAG_TABLES:
            raise ValueError(f"unknown tag table {table!r}")
        if enable:
            tag_ids.append(tag_id)
            self.connection.execute(
                f"INSERT INTO {table}_tag (id_{table}, id_tag) VALUES (?, ?)",
                (item_id, tag_id),
            )
        else:
            if tag_id in tag_ids:
                tag_ids.remove(tag_id)
            self.connection.execute("PRAGMA foreign_keys = ON")
            self.connection.execute(
                f"DELETE FROM {table}_tag WHERE (id_{table} = ?) AND (id_tag = ?)",
                (item_id, tag_id),
            )
        self.connection.commit()

    def set_rating(self, library, book_id, rating):
        """Store a book's star rating (0 to 5) and update the loaded library."""
        if not 0 <= rating <= MAX_RATING:
            raise ValueError(f"rating must be between 0 and {MAX_RATING}")
        self.connection.execute(
            "UPDATE book SET star = ? WHERE id = ?", (rating, book_id)
        )
        self.connection.commit()
        book = library.books.get(book_id)
        if book is not None:
            book.stars = rating


def _item_tags(library: Library, item: TreeItem) -> list[int]:
    if item.item_type == ItemType.BOOK:
        book = library.books.get(item.item_id)
        return book.tag_ids if book is not None else []
    if item.item_type == ItemType.SERIAL:
        return library.serial(item.item_id).tag_ids
    return library.author(item.item_id).tag_ids


def tags_of_items(library, items: Iterable[TreeItem]):
    """Return the ids of the tags carried by any of the given tree items."""
    found: set[int] = set()
    for item in items:
        found.update(_item_tags(library, item))
    return found