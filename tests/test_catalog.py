from datetime import date

import pytest

from shelfkit.catalog import (
    Author,
    Book,
    Library,
    SearchQuery,
    Serial,
    author_matches,
    search_books,
)


@pytest.fixture
def library():
    lib = Library(name="Home")
    lib.authors = {
        1: Author(name="Tolstoy Leo"),
        2: Author(name="Dumas Alexandre"),
    }
    lib.serials = {5: Serial(name="Musketeers")}
    lib.books = {
        10: Book(name="War and Peace", author_ids=[1], date=date(2020, 1, 1), genre_ids=[3], language_id=0),
        11: Book(name="Anna Karenina", author_ids=[1], date=date(2021, 1, 1), genre_ids=[4], language_id=1),
        12: Book(
            name="The Three Musketeers",
            author_ids=[2],
            serial_id=5,
            date=date(2022, 1, 1),
            genre_ids=[3],
            language_id=0,
        ),
        13: Book(name="Deleted war", author_ids=[2], date=date(2022, 6, 1), deleted=True),
    }
    lib.author_books = {1: [10, 11], 2: [12, 13]}
    return lib


@pytest.mark.parametrize(
    "query, name, expected",
    [
        ("leo tolstoy", "Tolstoy Leo", True),
        ("TOLSTOY", "Tolstoy Leo", True),
        ("Leo Leo", "Tolstoy Leo", False),
        ("Leo Leo", "Leo Tolstoy Leo", True),
        ("Tolst", "Tolstoy Leo", False),
        ("  ", "Anyone", True),
    ],
)
def test_author_matches(query, name, expected):
    assert author_matches(query, name) is expected


def test_books_by_author(library):
    assert library.books_by_author(1) == [10, 11]
    assert library.books_by_author(99) == []


def test_search_by_name_is_case_insensitive(library):
    assert search_books(library, SearchQuery(name="war"), False) == [10]


def test_search_shows_deleted_when_asked(library):
    assert search_books(library, SearchQuery(name="war"), True) == [10, 13]


def test_search_by_author(library):
    assert search_books(library, SearchQuery(author="leo"), False) == [10, 11]


def test_search_by_serial_requires_serial(library):
    assert search_books(library, SearchQuery(serial="musket"), False) == [12]


def test_search_by_genre_and_language(library):
    assert search_books(library, SearchQuery(genre_id=3), False) == [10, 12]
    assert search_books(library, SearchQuery(language_id=1), False) == [11]


def test_search_by_date_range(library):
    query = SearchQuery(date_from=date(2021, 1, 1), date_to=date(2022, 1, 1))
    assert search_books(library, query, False) == [11, 12]


def test_search_stops_at_max_count(library):
    result = search_books(library, SearchQuery(max_count=2), True)
    assert result == [10, 11]
    assert len(result) == 2


def test_search_result_is_subset_of_books(library):
    result = search_books(library, SearchQuery(), True)
    assert set(result) == set(library.books)
    assert result == sorted(result)