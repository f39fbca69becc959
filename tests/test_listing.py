from datetime import date

import pytest

from shelfkit.catalog import Author, Book, Genre, Library, Serial
from shelfkit.listing import (
    BookFilter,
    books_in_genre,
    books_in_serial,
    count_genres,
    count_series,
    filter_authors,
    is_book_in_list,
    matches_letter_filter,
    tag_icon_key,
)


@pytest.fixture
def library():
    return Library(
        name="Home",
        authors={
            1: Author(name="Tolstoy Leo", tag_ids=[7]),
            2: Author(name="Чехов Антон"),
            3: Author(name="1984 Collective"),
            4: Author(name="Nobody Here"),
        },
        serials={
            10: Serial(name="Alpha Saga", tag_ids=[8]),
            11: Serial(name="Beta Cycle"),
        },
        books={
            100: Book(name="War", first_author_id=1, author_ids=[1], serial_id=10,
                      genre_ids=[50], language_id=0, date=date(2020, 1, 1)),
            101: Book(name="Peace", first_author_id=1, author_ids=[1], serial_id=10,
                      genre_ids=[50, 51], language_id=1, deleted=True),
            102: Book(name="Steppe", first_author_id=2, author_ids=[2], serial_id=11,
                      genre_ids=[51], language_id=1, tag_ids=[9]),
            103: Book(name="Numbers", first_author_id=3, author_ids=[3],
                      genre_ids=[60], language_id=0),
        },
        author_books={1: [100, 101], 2: [102], 3: [103], 4: []},
    )


@pytest.fixture
def genres():
    return {
        5: Genre(name="Prose"),
        50: Genre(name="Classic", parent_id=5),
        51: Genre(name="Short", parent_id=5),
        6: Genre(name="Science"),
        60: Genre(name="Math", parent_id=6),
    }


@pytest.mark.parametrize("name", ["Anything", "", "1984", "Чехов"])
def test_star_matches_everything(name):
    assert matches_letter_filter(name, "*") is True


def test_hash_matches_non_letters():
    assert matches_letter_filter("1984 Collective", "#") is True
    assert matches_letter_filter("Tolstoy", "#") is False
    assert matches_letter_filter("Ёлкин", "#") is False


def test_prefix_is_case_insensitive():
    assert matches_letter_filter("Tolstoy Leo", "tol") is True
    assert matches_letter_filter("Чехов", "ч") is True
    assert matches_letter_filter("Tolstoy", "X") is False


def test_default_filter_hides_deleted(library):
    book_filter = BookFilter()
    assert is_book_in_list(library, library.books[100], book_filter) is True
    assert is_book_in_list(library, library.books[101], book_filter) is False
    assert is_book_in_list(library, library.books[101], BookFilter(show_deleted=True)) is True


def test_language_filter(library):
    assert is_book_in_list(library, library.books[102], BookFilter(language_id=1)) is True
    assert is_book_in_list(library, library.books[100], BookFilter(language_id=1)) is False


def test_tag_filter_uses_book_serial_and_author_tags(library):
    by_book = BookFilter(use_tag=True, tag_id=9)
    assert is_book_in_list(library, library.books[102], by_book) is True
    assert is_book_in_list(library, library.books[103], by_book) is False
    by_serial = BookFilter(use_tag=True, tag_id=8)
    assert is_book_in_list(library, library.books[100], by_serial) is True
    by_author = BookFilter(use_tag=True, tag_id=7)
    assert is_book_in_list(library, library.books[100], by_author) is True
    assert is_book_in_list(library, library.books[102], by_author) is False


def test_tag_filter_ignored_when_tags_disabled(library):
    assert is_book_in_list(library, library.books[103], BookFilter(use_tag=False, tag_id=9)) is True


def test_filter_authors_star(library):
    entries = filter_authors(library, "*", BookFilter())
    assert [entry.author_id for entry in entries] == [1, 2, 3]
    assert entries[0].count == 1
    assert entries[0].label == "Tolstoy Leo (1)"


def test_filter_authors_counts_deleted_when_shown(library):
    entries = filter_authors(library, "T", BookFilter(show_deleted=True))
    assert [entry.author_id for entry in entries] == [1]
    assert entries[0].count == len(library.author_books[1])


def test_filter_authors_hash(library):
    assert [e.author_id for e in filter_authors(library, "#", BookFilter())] == [3]


def test_count_series(library):
    assert count_series(library, "*", BookFilter()) == {10: 1, 11: 1}
    assert list(count_series(library, "b", BookFilter())) == [11]
    assert count_series(library, "#", BookFilter()) == {}


def test_count_genres_groups_by_parent(library, genres):
    tree = count_genres(library, genres, BookFilter(show_deleted=True))
    assert list(tree) == [5, 6]
    assert list(tree[5]) == [50, 51]
    assert sum(tree[5].values()) + sum(tree[6].values()) == sum(
        len(book.genre_ids) for book in library.books.values()
    )


def test_books_in_genre(library):
    assert books_in_genre(library, 51, -1) == [101, 102]
    assert books_in_genre(library, 50, 0) == [100]
    assert books_in_genre(library, 99, -1) == []


def test_books_in_serial(library):
    assert books_in_serial(library, 10, -1) == [100, 101]
    assert books_in_serial(library, 10, 1) == [101]


def test_tag_icon_key():
    assert tag_icon_key([]) is None
    assert tag_icon_key([7]) == 7
    assert tag_icon_key([7, 8]) == 0