"""Book description panel: the preview page and the links inside it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shelfkit.catalog import Genre

APP_NAME = "shelfkit"

_SIZE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB")

_LINK_KINDS = (
    # prefix, position of the letter, position where the id starts
    ("author_", 7, 8),
    ("genre_", None, 7),
    ("seria_", 6, 7),
)


@dataclass(frozen=True)
class ReviewLink:
    """A link clicked in the book description.

    ``kind`` is ``"author"``, ``"genre"`` or ``"seria"``; ``letter`` is the
    upper-cased first letter of the target's name, or None for genres.
    """

    kind: str
    item_id: int
    letter: Optional[str] = None


def format_size(size):
    """Format a byte count with a binary unit, e.g. ``1.5 kB``."""
    if size < 0:
        raise ValueError("size must not be negative")
    rest = 0
    unit = 0
    while size > 1024:
        if unit + 1 == len(_SIZE_UNITS):
            break
        unit += 1
        rest = size % 1024
        size //= 1024
    value = size + rest / 1024.0
    precision = 1 if unit > 0 else 0
    return f"{value:.{precision}f} {_SIZE_UNITS[unit]}"


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def parse_review_link(path):
    """Decode the path of a description link; unknown links give None.

    An id that is not a number is read as 0.
    """
    for prefix, letter_pos, id_pos in _LINK_KINDS:
        if path.startswith(prefix):
            letter = None
            if letter_pos is not None:
                letter = path[letter_pos : letter_pos + 1].upper()
            return ReviewLink(prefix[:-1], _to_int(path[id_pos:]), letter)
    return None


def book_file_path(library, book):
    """Return where a book is stored: its own file or its archive."""
    if not book.archive.strip():
        path = f"{library.path}/{book.file}.{book.format}"
    else:
        path = library.path + "/" + book.archive.replace(".inp", ".zip")
    return path.replace("\\", "/")


def _serial_link(library, book) -> str:
    if book.serial_id <= 0:
        return ""
    name = library.serial(book.serial_id).name
    return f"<a href=seria_{name[:1].upper()}{book.serial_id}>{name}</a>"


def _author_links(library, book) -> str:
    links = []
    for author_id in book.author_ids:
        name = library.author(author_id).name.replace(",", " ")
        links.append(f"<a href='author_{name[:1]}{author_id}'>{name}</a>")
    return "; ".join(links)


def _genre_links(genres, book) -> str:
    links = []
    for genre_id in book.genre_ids:
        name = genres.get(genre_id, Genre()).name
        links.append(f"<a href='genre_{name[:1]}{genre_id}'>{name}</a>")
    return "; ".join(links)


def _format_datetime(value) -> str:
    if value is None:
        return ""
    return value.strftime("%d.%m.%Y %H:%M:%S")


def render_preview(template, library, genres, book, file_path, file_size, file_date, file_name, info_color):
    """Fill the preview page template with the details of a book.

    ``file_size`` of 0 or less leaves the size empty; ``file_date`` may be
    None.
    """
    replacements = (
        ("#annotation#", book.annotation),
        ("#title#", book.name),
        ("#author#", _author_links(library, book)),
        ("#genre#", _genre_links(genres, book)),
        ("#series#", _serial_link(library, book)),
        ("#file_path#", file_path),
        ("#file_size#", format_size(file_size) if file_size > 0 else ""),
        ("#file_data#", _format_datetime(file_date)),
        ("#file_name#", file_name),
        ("#infobcolor", info_color),
    )
    content = template
    for placeholder, value in replacements:
        content = content.replace(placeholder, value)
    return content


def window_title(library_id, library_name):
    """Return the main window title for the current library."""
    if library_id == 0 or not library_name:
        return APP_NAME
    return f"{APP_NAME} — {library_name}"