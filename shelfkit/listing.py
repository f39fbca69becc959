"""Filtering of authors, series, genres and books for the catalogue views."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple

from shelfkit.catalog import Book, Genre, Library

_LETTER = re.compile("[A-Za-zа-яА-ЯЁё]")


@dataclass
class BookFilter:
    """The view filters that decide whether a book is shown.

    ``language_id`` of -1 accepts every language; ``tag_id`` of 0 accepts
    every tag. Tags are only checked when ``use_tag`` is set.
    """

    language_id: int = -1
    show_deleted: bool = False
    use_tag: bool = False
    tag_id: int = 0


class AuthorEntry(NamedTuple):
    """An author shown in the author list with the number of visible books."""

    author_id: int
    name: str
    count: int

    @property
    def label(self) -> str:
        return f"{self.name} ({self.count})"


def matches_letter_filter(name, search):
    """Check a name against the alphabet filter.

    ``*`` matches everything, ``#`` matches names that do not begin with a
    Latin or Cyrillic letter, and anything else is a case-insensitive prefix.
    """
    if search == "*":
        return True
    if search == "#" and not _LETTER.search(name[:1]):
        return True
    return name.casefold().startswith(search.casefold())


def is_book_in_list(library, book, book_filter):
    """Decide whether a book passes the language, deletion and tag filters."""
    if book_filter.language_id != -1 and book_filter.language_id != book.language_id:
        return False
    if not (book_filter.show_deleted or not book.deleted):
        return False
    tag = book_filter.tag_id
    if not book_filter.use_tag or tag == 0:
        return True
    if tag in book.tag_ids:
        return True
    if book.serial_id > 0 and tag in library.serial(book.serial_id).tag_ids:
        return True
    return tag in library.author(book.first_author_id).tag_ids


def _visible(library: Library, book_filter: BookFilter, book_ids) -> list[Book]:
    books = (library.books.get(book_id) for book_id in book_ids)
    return [book for book in books if book is not None and is_book_in_list(library, book, book_filter)]


def filter_authors(library, search, book_filter):
    """Return the authors matching ``search`` that have visible books.

    Authors come in id order, each with the count of its visible books.
    """
    entries: list[AuthorEntry] = []
    for author_id in sorted(library.authors):
        name = library.authors[author_id].name
        if not matches_letter_filter(name, search):
            continue
        count = len(_visible(library, book_filter, library.books_by_author(author_id)))
        if count > 0:
            entries.append(AuthorEntry(author_id, name, count))
    return entries


def count_series(library, search, book_filter):
    """Count visible books per series whose name matches ``search``.

    The result is ordered by series id.
    """
    counts: dict[int, int] = {}
    for book_id in sorted(library.books):
        book = library.books[book_id]
        if book.serial_id == 0 or not is_book_in_list(library, book, book_filter):
            continue
        if matches_letter_filter(library.serial(book.serial_id).name, search):
            counts[book.serial_id] = counts.get(book.serial_id, 0) + 1
    return dict(sorted(counts.items()))


def count_genres(library, genres, book_filter):
    """Count visible books per genre, grouped under each parent genre.

    Returns ``{parent_id: {genre_id: count}}``; genres are visited in id
    order and parents appear in the order they are first met.
    """
    counts: dict[int, int] = {}
    for book_id in sorted(library.books):
        book = library.books[book_id]
        if is_book_in_list(library, book, book_filter):
            for genre_id in book.genre_ids:
                counts[genre_id] = counts.get(genre_id, 0) + 1

    tree: dict[int, dict[int, int]] = {}
    for genre_id in sorted(counts):
        parent_id = genres.get(genre_id, Genre()).parent_id
        tree.setdefault(parent_id, {})[genre_id] = counts[genre_id]
    return tree


def _language_ok(book: Book, language_id: int) -> bool:
    return language_id == -1 or language_id == book.language_id


def books_in_genre(library, genre_id, language_id):
    """Return the ids of books of a genre in the given language, in id order."""
    return [
        book_id
        for book_id in sorted(library.books)
        if _language_ok(library.books[book_id], language_id)
        and genre_id in library.books[book_id].genre_ids
    ]


def books_in_serial(library, serial_id, language_id):
    """Return the ids of books of a series in the given language, in id order."""
    return [
        book_id
        for book_id in sorted(library.books)
        if library.books[book_id].serial_id == serial_id
        and _language_ok(library.books[book_id], language_id)
    ]


def tag_icon_key(tag_ids):
    """Choose the tag icon for an item.

    No tags give None, a single tag gives its id, several tags give 0,
    the key of the combined-tags icon.
    """
    if not tag_ids:
        return None
    if len(tag_ids) == 1:
        return tag_ids[0]
    return 0