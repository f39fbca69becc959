"""In-memory library catalogue and the advanced book search."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass
class Genre:
    """A genre; top-level genres are the parents of others."""

    name: str = ""
    parent_id: int = 0


@dataclass
class Author:
    """A book author."""

    name: str = ""
    tag_ids: list[int] = field(default_factory=list)


@dataclass
class Serial:
    """A book series."""

    name: str = ""
    tag_ids: list[int] = field(default_factory=list)


@dataclass
class Book:
    """A book record of a library."""

    name: str = ""
    author_ids: list[int] = field(default_factory=list)
    first_author_id: int = 0
    serial_id: int = 0
    num_in_serial: int = 0
    size: int = 0
    stars: int = 0
    date: date = date.min
    genre_ids: list[int] = field(default_factory=list)
    language_id: int = 0
    format: str = ""
    deleted: bool = False
    tag_ids: list[int] = field(default_factory=list)
    annotation: str = ""
    img: str = ""
    archive: str = ""
    file: str = ""


@dataclass
class Library:
    """A loaded library with its books, authors, series and languages."""

    name: str = ""
    path: str = ""
    books: dict[int, Book] = field(default_factory=dict)
    authors: dict[int, Author] = field(default_factory=dict)
    serials: dict[int, Serial] = field(default_factory=dict)
    languages: list[str] = field(default_factory=list)
    author_books: dict[int, list[int]] = field(default_factory=dict)

    def books_by_author(self, author_id):
        """Return the ids of the books linked to an author."""
        return list(self.author_books.get(author_id, []))

    def author(self, author_id) -> Author:
        return self.authors.get(author_id) or Author()

    def serial(self, serial_id) -> Serial:
        return self.serials.get(serial_id) or Serial()


@dataclass
class SearchQuery:
    """Criteria of the advanced search; empty strings match everything."""

    name: str = ""
    author: str = ""
    serial: str = ""
    date_from: date = date.min
    date_to: date = date.max
    max_count: int = 1000
    genre_id: int = 0
    language_id: int = -1


def author_matches(query, name):
    """Check that every word of ``query`` equals a distinct word of ``name``.

    Words are compared without regard to case.
    """
    name_words = [word.casefold() for word in name.split(" ")]
    used: set[int] = set()
    for word in query.split():
        wanted = word.casefold()
        position = next(
            (i for i, candidate in enumerate(name_words) if candidate == wanted and i not in used),
            None,
        )
        if position is None:
            return False
        used.add(position)
    return True


def _contains(text: str, part: str) -> bool:
    return part.casefold() in text.casefold()


def _book_matches(library: Library, book: Book, query: SearchQuery, show_deleted: bool) -> bool:
    author = query.author.strip()
    name = query.name.strip()
    serial = query.serial.strip()
    if author and not any(
        author_matches(author, library.author(author_id).name) for author_id in book.author_ids
    ):
        return False
    if not (show_deleted or not book.deleted):
        return False
    if not query.date_from <= book.date <= query.date_to:
        return False
    if name and not _contains(book.name, name):
        return False
    if serial and not (book.serial_id > 0 and _contains(library.serial(book.serial_id).name, serial)):
        return False
    if query.language_id != -1 and book.language_id != query.language_id:
        return False
    return query.genre_id == 0 or query.genre_id in book.genre_ids


def search_books(library, query, show_deleted):
    """Return the ids of matching books in id order.

    The scan stops once the number of matches equals ``query.max_count``.
    """
    found: list[int] = []
    for book_id in sorted(library.books):
        if _book_matches(library, library.books[book_id], query, show_deleted):
            found.append(book_id)
        if len(found) == query.max_count:
            break
    return found