# shelfkit

Building blocks for managing a home e-book collection. The package is a
library: it has no command-line entry point.

## Modules

### `shelfkit.mobi`

This module edits MOBI/AZW files at the level of the Palm database container.

- `MobiEditor(filename)` loads a book into memory. It raises `MobiError` if the file cannot be read.
- `save_mobi7(path, remove_personal, repair_cover)` writes the MOBI7 part of a combined MOBI7/KF8 file. It drops the KF8 and source sections, and it blanks the `FONT` and `RESC` image records.
- `save_azw(path, remove_personal, repair_cover)` writes the KF8 part together with the shared images, which makes a standalone AZW3 file.
- Both save methods return `False` when the book has no separate KF8 part.
- `remove_personal` adds an `EBOK` EXTH 501 record.
- `repair_cover` copies the cover offset (EXTH 201) into the thumbnail record (EXTH 202).
- `add_exth_to_mobi(exth_num, exth_data)` marks the book as `EBOK` and gives it a fresh random ASIN. It writes the result next to the source file, with `501.mobi` appended to the name.
- The low-level helpers work on `bytes` and return new values:
  - integers: `get_int32`, `get_int16`, `int32_to_bytes`, `int16_to_bytes`, `write_int32`, `write_int16`
  - sections: `section_bounds`, `read_section`, `write_section`, `insert_section`, `insert_section_range`, `delete_section_range`, `null_section`
  - EXTH records: `exth_params`, `read_exth`, `add_exth`, `write_exth`, `del_exth`
- Reads outside the data raise `MobiError`.

### `shelfkit.options`

This module holds the application and export settings as dataclasses: `Options`, `ExportOptions`, `FontExportOptions` and `ToolsOptions`.

- `ExportOptions.set_default(name, output_format, default)` resets a profile to its default values.
- `ExportOptions.send_type` gives `SendType.DEVICE` or `SendType.MAIL`.

### `shelfkit.catalog`

This module is the in-memory library model: `Library`, `Book`, `Author`, `Serial` and `Genre`.

- `search_books(library, SearchQuery(...), show_deleted)` runs the advanced search. It filters by title, author words, series, date range, genre and language. It returns book ids in id order and stops once `max_count` books have matched.
- `author_matches(query, name)` checks that every word of the query equals a different word of the name. The comparison ignores case.

### `shelfkit.listing`

This module holds the filters for the author, series and genre views. The settings they share are passed as a `BookFilter`, which covers language, deleted books and tag.

- `matches_letter_filter(name, search)` applies the alphabet filter: `*` matches every name, `#` matches names that do not start with a Latin or Cyrillic letter, and anything else is a prefix.
- `is_book_in_list(library, book, book_filter)` decides whether a book is shown.
- `filter_authors`, `count_series` and `count_genres` return the entries of each view together with counts of visible books.
- `books_in_genre` and `books_in_serial` return the ids of the books of a genre or a series.
- `tag_icon_key(tag_ids)` chooses which tag icon an item shows.

### `shelfkit.booktree`

This module builds the rows of the book view.

- `build_book_tree(...)` returns `TreeItem` roots. In tree view they are grouped as author → series → book; otherwise they form a flat list.
- Check marks have three states (`CheckState`). They are handled by `propagate_to_children`, `propagate_to_parent`, `toggle_all` and `uncheck_books`.
- `checked_book_ids` and `checked_items` collect the checked entries.

### `shelfkit.preview`

This module builds the book description panel.

- `render_preview(...)` fills an HTML template. The placeholders are `#title#`, `#author#`, `#genre#`, `#series#`, `#annotation#` and the `#file_...#` fields.
- `parse_review_link(path)` decodes the author, genre and series links in the description into a `ReviewLink`.
- `format_size`, `book_file_path` and `window_title` are small helpers.

### `shelfkit.tags`

`TagStore(connection)` works on an `sqlite3` connection.

- `load_tags()` reads tags and their icons.
- `set_tag(...)` attaches a tag to a book, series or author, or removes it.
- `set_rating(...)` stores a book's star rating, from 0 to 5.

The module also has `is_latin1_name` and `tags_of_items`.

## Example

```python
from shelfkit.mobi import MobiEditor

book = MobiEditor("book.mobi")
if not book.save_azw("book.azw3", remove_personal=True, repair_cover=True):
    print("no KF8 part in this book")
```

## What it does not do

- It does not create a library database, and it does not load a `Library` from one. Callers fill the catalogue dataclasses themselves.
- `TagStore` expects the `tag`, `icon`, `book`, and `*_tag` tables to exist already.
- Settings are plain dataclasses. Nothing reads them from disk or saves them.
- There is no graphical interface and no catalogue server.
- There is no book import, format conversion, or sending of books to a device or by e-mail.

## Tests

The test suite uses pytest. It is installed with the `test` extra.