"""The book tree shown for a selection: authors, series and books with check marks."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, Iterator, Optional

from shelfkit.catalog import Book, Genre, Library
from shelfkit.listing import BookFilter, is_book_in_list


class CheckState(IntEnum):
    """Check mark of a tree item."""

    UNCHECKED = 0
    PARTIALLY_CHECKED = 1
    CHECKED = 2


class ItemType(Enum):
    """Kind of a tree item."""

    BOOK = "book"
    SERIAL = "serial"
    AUTHOR = "author"


@dataclass(eq=False)
class TreeItem:
    """A node of the book tree.

    Book items carry their table columns in ``columns`` together with the
    raw ``size``, ``stars`` and ``deleted`` values.
    """

    item_type: ItemType
    item_id: int
    text: str = ""
    check_state: CheckState = CheckState.UNCHECKED
    columns: dict[str, str] = field(default_factory=dict)
    size: int = 0
    stars: int = 0
    deleted: bool = False
    children: list[TreeItem] = field(default_factory=list)
    parent: Optional[TreeItem] = field(default=None, repr=False)

    def add_child(self, item):
        """Attach ``item`` as the last child of this item and return it."""
        item.parent = self
        self.children.append(item)
        return item

    def walk(self) -> Iterator[TreeItem]:
        """Yield this item and all its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


def _state_for(checked: bool) -> CheckState:
    return CheckState.CHECKED if checked else CheckState.UNCHECKED


def _merge_state(item: TreeItem, checked: bool) -> None:
    """Turn a group item partial when a new book disagrees with its mark."""
    if (item.check_state == CheckState.CHECKED and not checked) or (
        item.check_state == CheckState.UNCHECKED and checked
    ):
        item.check_state = CheckState.PARTIALLY_CHECKED


def _format_date(value) -> str:
    return f"{value.day:02d}.{value.month:02d}.{value.year:04d}"


def _book_item(library: Library, genres: dict[int, Genre], book_id: int, book: Book,
               author_name: str, checked: bool) -> TreeItem:
    columns = {"name": book.name, "author": author_name}
    if book.serial_id > 0:
        columns["serial"] = library.serial(book.serial_id).name
    if book.num_in_serial > 0:
        columns["number"] = str(book.num_in_serial)
    columns["date"] = _format_date(book.date)
    if book.genre_ids:
        columns["genre"] = genres.get(book.genre_ids[0], Genre()).name
    if 0 <= book.language_id < len(library.languages):
        columns["language"] = library.languages[book.language_id]
    else:
        columns["language"] = ""
    columns["format"] = book.format
    return TreeItem(
        ItemType.BOOK,
        book_id,
        text=book.name,
        check_state=_state_for(checked),
        columns=columns,
        size=book.size,
        stars=book.stars,
        deleted=book.deleted,
    )


def build_book_tree(library, genres, book_ids, checked_ids, current_author_id, tree_view, book_filter):
    """Build the rows of the book view for the given book ids.

    In tree view books are grouped under their author and, when they belong
    to one, their series. ``current_author_id`` greater than 0 places every
    book under that author. Books rejected by ``book_filter`` or missing from
    the library are left out. Returns the top-level items.
    """
    book_filter = book_filter or BookFilter()
    checked_ids = set(checked_ids)
    roots: list[TreeItem] = []
    authors: dict[int, TreeItem] = {}
    serials: dict[int, list[TreeItem]] = {}

    for book_id in book_ids:
        book = library.books.get(book_id)
        if book is None or not is_book_in_list(library, book, book_filter):
            continue
        checked = book_id in checked_ids
        author_id = current_author_id if current_author_id > 0 else book.first_author_id
        author_name = library.author(author_id).name
        item = _book_item(library, genres, book_id, book, author_name, checked)

        if not tree_view:
            roots.append(item)
            continue

        author_item = authors.get(author_id)
        if author_item is None:
            author_item = TreeItem(ItemType.AUTHOR, author_id, text=author_name,
                                   check_state=_state_for(checked))
            authors[author_id] = author_item
            roots.append(author_item)
        else:
            _merge_state(author_item, checked)

        if book.serial_id > 0:
            serial_item = next(
                (candidate for candidate in serials.get(book.serial_id, [])
                 if candidate.parent is author_item),
                None,
            )
            if serial_item is None:
                serial_item = author_item.add_child(
                    TreeItem(ItemType.SERIAL, book.serial_id,
                             text=library.serial(book.serial_id).name,
                             check_state=_state_for(checked))
                )
                serials.setdefault(book.serial_id, []).append(serial_item)
            else:
                _merge_state(serial_item, checked)
            serial_item.add_child(item)
        else:
            author_item.add_child(item)
    return roots


def propagate_to_children(item):
    """Give every descendant of ``item`` the check mark of ``item``."""
    for child in item.children:
        child.check_state = item.check_state
        propagate_to_children(child)


def propagate_to_parent(item):
    """Recompute the check marks of the ancestors of a changed ``item``."""
    parent = item.parent
    while parent is not None:
        states = {child.check_state for child in parent.children}
        if CheckState.PARTIALLY_CHECKED in states or (
            CheckState.CHECKED in states and CheckState.UNCHECKED in states
        ):
            parent.check_state = CheckState.PARTIALLY_CHECKED
        elif CheckState.CHECKED in states:
            parent.check_state = CheckState.CHECKED
        else:
            parent.check_state = CheckState.UNCHECKED
        parent = parent.parent


def _leaves(roots: Iterable[TreeItem]) -> Iterator[TreeItem]:
    for root in roots:
        for item in root.walk():
            if not item.children:
                yield item


def checked_book_ids(roots):
    """Return the ids of the checked book leaves, in tree order."""
    return [
        item.item_id
        for item in _leaves(roots)
        if item.check_state == CheckState.CHECKED and item.item_type == ItemType.BOOK
    ]


def checked_items(roots):
    """Return every checked item; an item's checked descendants come before it."""
    found: list[TreeItem] = []
    for item in roots:
        if item.children:
            found.extend(checked_items(item.children))
        if item.check_state == CheckState.CHECKED:
            found.append(item)
    return found


def uncheck_books(roots, book_ids):
    """Clear the mark of checked leaves whose id is in ``book_ids``.

    Returns the number of items unchecked.
    """
    wanted = set(book_ids)
    count = 0
    queue = deque(roots)
    while queue:
        item = queue.popleft()
        if item.children:
            queue.extend(item.children)
        elif item.item_id in wanted and item.check_state == CheckState.CHECKED:
            item.check_state = CheckState.UNCHECKED
            count += 1
    return count


def toggle_all(roots):
    """Uncheck everything if any book is checked, otherwise check everything.

    Returns the mark that was applied.
    """
    state = CheckState.UNCHECKED if checked_book_ids(roots) else CheckState.CHECKED
    for root in roots:
        root.check_state = state
        propagate_to_children(root)
    return state