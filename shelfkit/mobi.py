"""Low-level editing of MOBI/AZW3 (Palm database) e-book files.

The helpers work on immutable ``bytes`` values and return new ones; the
:class:`MobiEditor` class combines them to split a combined MOBI7/KF8 file
into a plain MOBI7 file or a standalone AZW3 file.
"""

from __future__ import annotations

import struct
import uuid
from pathlib import Path
from typing import NamedTuple

MOBI_VERSION = 36
MOBI_HEADER_BASE = 16
MOBI_HEADER_LENGTH = 20
UNIQUE_ID_SEED = 68
NUMBER_OF_PDB_RECORDS = 76
FIRST_PDB_RECORD = 78
FIRST_IMAGE_RECORD = 108
LAST_CONTENT_INDEX = 194
TITLE_OFFSET = 84
KF8_LAST_CONTENT_INDEX = 192
FCIS_INDEX = 200
FLIS_INDEX = 208
DATP_INDEX = 256
HUFFTBLOFF = 120
SRCS_INDEX = 224
SRCS_COUNT = 228
FLAGS_OFFSET = 0x80

EXTH_KF8_BOUNDARY = 121
EXTH_KF8_COVER_URI = 129
EXTH_COVER_OFFSET = 201
EXTH_THUMB_OFFSET = 202
EXTH_CDE_TYPE = 501
EXTH_ASIN = 113
EXTH_ASIN_ALT = 504
EXTH_START_READING = 116
EXTH_RESC_COUNT = 125

NO_INDEX = 0xFFFFFFFF

_KF8_INDEX_FIELDS = (KF8_LAST_CONTENT_INDEX, FCIS_INDEX, FLIS_INDEX, DATP_INDEX, HUFFTBLOFF)


class MobiError(Exception):
    """Raised when a MOBI file cannot be read or is malformed."""


class ExthHeader(NamedTuple):
    """Position and size of the EXTH block inside record 0."""

    base: int
    length: int
    count: int


def _unpack(fmt: str, data: bytes, offset: int) -> int:
    if offset < 0:
        raise MobiError(f"negative offset {offset}")
    try:
        return struct.unpack_from(fmt, data, offset)[0]
    except struct.error as exc:
        raise MobiError(f"offset {offset} is outside the data ({len(data)} bytes)") from exc


def get_int32(data: bytes, offset: int = 0) -> int:
    """Read an unsigned big-endian 32-bit integer."""
    return _unpack(">I", data, offset)


def get_int16(data: bytes, offset: int = 0) -> int:
    """Read an unsigned big-endian 16-bit integer."""
    return _unpack(">H", data, offset)


def int32_to_bytes(value: int) -> bytes:
    """Encode a value as a big-endian 32-bit integer, wrapping modulo 2**32."""
    return struct.pack(">I", value & 0xFFFFFFFF)


def int16_to_bytes(value: int) -> bytes:
    """Encode a value as a big-endian 16-bit integer, wrapping modulo 2**16."""
    return struct.pack(">H", value & 0xFFFF)


def exth_params(rec0: bytes) -> ExthHeader:
    """Locate the EXTH block of a record 0."""
    base = MOBI_HEADER_BASE + get_int32(rec0, MOBI_HEADER_LENGTH)
    return ExthHeader(base, get_int32(rec0, base + 4), get_int32(rec0, base + 8))


def _exth_records(rec0: bytes, header: ExthHeader):
    """Yield (position, id, size) for every EXTH record."""
    pos = header.base + 12
    for _ in range(header.count):
        size = get_int32(rec0, pos + 4)
        yield pos, get_int32(rec0, pos), size
        pos += size


def read_exth(rec0: bytes, exth_num: int) -> list[bytes]:
    """Return the payloads of all EXTH records with the given id."""
    return [
        rec0[pos + 8 : pos + size]
        for pos, exth_id, size in _exth_records(rec0, exth_params(rec0))
        if exth_id == exth_num
    ]


def section_bounds(data: bytes, secno: int) -> tuple[int, int]:
    """Return the start and end offsets of a Palm database section."""
    nsec = get_int16(data, NUMBER_OF_PDB_RECORDS)
    start = get_int32(data, FIRST_PDB_RECORD + secno * 8)
    if nsec - 1 == secno:
        end = len(data)
    else:
        end = get_int32(data, FIRST_PDB_RECORD + (secno + 1) * 8)
    return start, end


def read_section(data: bytes, secno: int) -> bytes:
    """Return the contents of a section."""
    start, end = section_bounds(data, secno)
    return data[start:end]


def _record_attrs(data: bytes, index: int) -> bytes:
    pos = FIRST_PDB_RECORD + 4 + index * 8
    return data[pos : pos + 4]


def delete_section_range(data: bytes, first: int, last: int) -> bytes:
    """Remove sections ``first`` to ``last`` inclusive."""
    nsec = get_int16(data, NUMBER_OF_PDB_RECORDS)
    removed = last - first + 1
    remaining = nsec - removed
    out = bytearray(data[:UNIQUE_ID_SEED])
    out += int32_to_bytes(2 * remaining + 1)
    out += data[UNIQUE_ID_SEED + 4 : UNIQUE_ID_SEED + 8]
    out += int16_to_bytes(remaining)
    for i in range(first):
        offset = get_int32(data, FIRST_PDB_RECORD + i * 8)
        out += int32_to_bytes(offset - 8 * removed)
        out += _record_attrs(data, i)

    first_start, _ = section_bounds(data, first)
    _, last_end = section_bounds(data, last)
    shift = last_end - first_start + 8 * removed
    for i in range(last + 1, nsec):
        offset = get_int32(data, FIRST_PDB_RECORD + i * 8)
        out += int32_to_bytes(offset - shift)
        out += _record_attrs(data, i)

    zero_start, _ = section_bounds(data, 0)
    new_start = zero_start - 8 * removed
    pad = new_start - (FIRST_PDB_RECORD + 8 * remaining)
    if pad > 0:
        out += bytes(pad)
    out += data[zero_start:first_start]
    out += data[last_end:]
    return bytes(out)


def insert_section(data: bytes, secno: int, secdata: bytes) -> bytes:
    """Insert a new section before section ``secno``."""
    nsec = get_int16(data, NUMBER_OF_PDB_RECORDS)
    sec_start = get_int32(data, FIRST_PDB_RECORD + secno * 8)
    zero_start, _ = section_bounds(data, 0)
    growth = len(secdata)
    out = bytearray(data[:UNIQUE_ID_SEED])
    out += int32_to_bytes(2 * (nsec + 1) + 1)
    out += data[UNIQUE_ID_SEED + 4 : UNIQUE_ID_SEED + 8]
    out += int16_to_bytes(nsec + 1)
    for i in range(secno):
        out += int32_to_bytes(get_int32(data, FIRST_PDB_RECORD + i * 8) + 8)
        out += _record_attrs(data, i)
    out += int32_to_bytes(sec_start + 8)
    out += int32_to_bytes(2 * secno)
    for i in range(secno, nsec):
        out += int32_to_bytes(get_int32(data, FIRST_PDB_RECORD + i * 8) + 8 + growth)
        out += int32_to_bytes(2 * (i + 1))
    new_start = zero_start + 8
    pad = new_start - (FIRST_PDB_RECORD + 8 * (nsec + 1))
    if pad > 0:
        out += bytes(pad)
    out += data[zero_start:sec_start]
    out += secdata
    out += data[sec_start:]
    return bytes(out)


def insert_section_range(data: bytes, first: int, last: int, target: bytes, targetsec: int) -> bytes:
    """Copy sections ``first``..``last`` of ``data`` into ``target`` at ``targetsec``."""
    out = target
    for index in range(last, first - 1, -1):
        out = insert_section(out, targetsec, read_section(data, index))
    return out


def write_int32(data: bytes, offset: int, value: int) -> bytes:
    """Return ``data`` with a 32-bit integer replaced at ``offset``."""
    return data[:offset] + int32_to_bytes(value) + data[offset + 4 :]


def write_int16(data: bytes, offset: int, value: int) -> bytes:
    """Return ``data`` with a 16-bit integer replaced at ``offset``."""
    return data[:offset] + int16_to_bytes(value) + data[offset + 2 :]


def write_exth(data: bytes, exth_num: int, exth_data: bytes) -> bytes:
    """Replace the payload of the first EXTH record with the given id.

    The record is returned unchanged when no such EXTH record exists.
    """
    header = exth_params(data)
    for pos, exth_id, old_size in _exth_records(data, header):
        if exth_id != exth_num:
            continue
        new_size = len(exth_data) + 8
        diff = new_size - old_size
        record = data
        if diff != 0:
            record = write_int32(record, TITLE_OFFSET, get_int32(record, TITLE_OFFSET) + diff)
        return (
            record[: header.base + 4]
            + int32_to_bytes(header.length + diff)
            + int32_to_bytes(header.count)
            + data[header.base + 12 : pos + 4]
            + int32_to_bytes(new_size)
            + exth_data
            + data[pos + old_size :]
        )
    return data


def del_exth(data: bytes, exth_num: int) -> bytes:
    """Remove the first EXTH record with the given id."""
    header = exth_params(data)
    for pos, exth_id, size in _exth_records(data, header):
        if exth_id != exth_num:
            continue
        record = write_int32(data, TITLE_OFFSET, get_int32(data, TITLE_OFFSET) - size)
        record = record[:pos] + record[pos + size :]
        return (
            record[: header.base + 4]
            + int32_to_bytes(header.length - size)
            + int32_to_bytes(header.count - 1)
            + record[header.base + 12 :]
        )
    return data


def add_exth(data: bytes, exth_num: int, exth_data: bytes) -> bytes:
    """Prepend a new EXTH record to the EXTH block."""
    header = exth_params(data)
    size = 8 + len(exth_data)
    record = (
        data[: header.base + 4]
        + int32_to_bytes(header.length + size)
        + int32_to_bytes(header.count + 1)
        + int32_to_bytes(exth_num)
        + int32_to_bytes(size)
        + exth_data
        + data[header.base + 12 :]
    )
    return write_int32(record, TITLE_OFFSET, get_int32(record, TITLE_OFFSET) + size)


def write_section(data: bytes, secno: int, secdata: bytes) -> bytes:
    """Replace the contents of a section."""
    return insert_section(delete_section_range(data, secno, secno), secno, secdata)


def null_section(data: bytes, secno: int) -> bytes:
    """Empty a section while keeping its entry in the record table."""
    nsec = get_int16(data, NUMBER_OF_PDB_RECORDS)
    sec_start, sec_end = section_bounds(data, secno)
    zero_start, _ = section_bounds(data, 0)
    shrink = sec_end - sec_start
    out = bytearray(data[:FIRST_PDB_RECORD])
    for i in range(nsec):
        offset = get_int32(data, FIRST_PDB_RECORD + i * 8)
        if i > secno:
            offset -= shrink
        out += int32_to_bytes(offset)
        out += _record_attrs(data, i)
    pad = zero_start - (FIRST_PDB_RECORD + 8 * nsec)
    if pad > 0:
        out += bytes(pad)
    out += data[zero_start:sec_start]
    out += data[sec_end:]
    return bytes(out)


def _repair_cover(rec0: bytes) -> bytes:
    covers = read_exth(rec0, EXTH_COVER_OFFSET)
    if covers:
        rec0 = del_exth(rec0, EXTH_THUMB_OFFSET)
        rec0 = add_exth(rec0, EXTH_THUMB_OFFSET, covers[0])
    return rec0


class MobiEditor:
    """A combined MOBI7/KF8 book loaded into memory."""

    def __init__(self, filename):
        self.filename = str(filename)
        try:
            self.data = Path(filename).read_bytes()
        except OSError as exc:
            raise MobiError(f"cannot open mobi file {self.filename}") from exc

    def _kf8_boundary(self, rec0: bytes) -> int | None:
        boundary = read_exth(rec0, EXTH_KF8_BOUNDARY)
        if not boundary:
            return None
        index = get_int32(boundary[0], 0)
        return None if index == NO_INDEX else index

    def save_mobi7(self, path, remove_personal, repair_cover) -> bool:
        """Write the MOBI7 part of the book to ``path``.

        Returns False when the book has no separate KF8 part.
        """
        rec0 = read_section(self.data, 0)
        if get_int32(rec0, MOBI_VERSION) == 8:
            return False
        kf8 = self._kf8_boundary(rec0)
        if kf8 is None:
            return False

        num_sec = get_int16(self.data, NUMBER_OF_PDB_RECORDS)
        result = delete_section_range(self.data, kf8 - 1, num_sec - 2)

        srcs = get_int32(rec0, SRCS_INDEX)
        num_srcs = get_int32(rec0, SRCS_COUNT)
        if srcs != NO_INDEX and num_srcs > 0:
            result = delete_section_range(result, srcs, srcs + num_srcs - 1)
            rec0 = write_int32(rec0, SRCS_INDEX, NO_INDEX)
            rec0 = write_int32(rec0, SRCS_COUNT, 0)
        rec0 = write_exth(rec0, EXTH_KF8_BOUNDARY, int32_to_bytes(NO_INDEX))
        rec0 = write_exth(rec0, EXTH_KF8_COVER_URI, b"")
        rec0 = write_int32(rec0, FLAGS_OFFSET, get_int32(rec0, FLAGS_OFFSET) & 0x07FF)

        if repair_cover:
            rec0 = _repair_cover(rec0)
        if remove_personal:
            rec0 = add_exth(rec0, EXTH_CDE_TYPE, b"EBOK")

        result = write_section(result, 0, rec0)

        first_image = get_int32(rec0, FIRST_IMAGE_RECORD)
        last_image = get_int16(rec0, LAST_CONTENT_INDEX)
        if last_image == 0xFFFF:
            for offset in _KF8_INDEX_FIELDS:
                value = get_int32(rec0, offset)
                if 0 < value < last_image:
                    last_image = value - 1

        for index in range(first_image, last_image):
            if read_section(result, index)[:4] in (b"FONT", b"RESC"):
                result = null_section(result, index)

        Path(path).write_bytes(result)
        return True

    def save_azw(self, path, remove_personal, repair_cover) -> bool:
        """Write the KF8 part of the book, with the shared images, to ``path``.

        Returns False when the book has no separate KF8 part.
        """
        rec0 = read_section(self.data, 0)
        if get_int32(rec0, MOBI_VERSION) == 8:
            return False
        kf8 = self._kf8_boundary(rec0)
        if kf8 is None:
            return False

        kf_rec0 = read_section(self.data, kf8)
        first_image = get_int32(rec0, FIRST_IMAGE_RECORD)
        last_image = get_int16(rec0, LAST_CONTENT_INDEX)
        image_count = last_image - first_image + 1

        result = delete_section_range(self.data, 0, kf8 - 1)
        target = get_int32(kf_rec0, FIRST_IMAGE_RECORD)
        result = insert_section_range(self.data, first_image, last_image, result, target)

        kf_rec0 = read_section(result, 0)
        for _ in range(len(read_exth(kf_rec0, EXTH_START_READING)) - 1):
            kf_rec0 = del_exth(kf_rec0, EXTH_START_READING)
        kf_rec0 = write_exth(kf_rec0, EXTH_RESC_COUNT, int32_to_bytes(image_count))
        flags = (get_int32(kf_rec0, FLAGS_OFFSET) & 0x1FFF) | 0x0800
        kf_rec0 = write_int32(kf_rec0, FLAGS_OFFSET, flags)

        for offset in _KF8_INDEX_FIELDS:
            value = get_int32(kf_rec0, offset)
            if value != NO_INDEX:
                kf_rec0 = write_int32(kf_rec0, offset, value + image_count)

        if repair_cover:
            kf_rec0 = _repair_cover(kf_rec0)
        if remove_personal:
            kf_rec0 = add_exth(kf_rec0, EXTH_CDE_TYPE, b"EBOK")

        result = write_section(result, 0, kf_rec0)
        Path(path).write_bytes(result)
        return True

    def add_exth_to_mobi(self, exth_num, exth_data) -> bool:
        """Mark the book as an e-book with a fresh ASIN.

        The result is written next to the source file with ``501.mobi``
        appended to its name. ``exth_num`` and ``exth_data`` are accepted
        for interface compatibility; the records written are fixed.
        Returns False when the book has no separate KF8 part.
        """
        asin = ("{" + str(uuid.uuid4()) + "}").encode()
        rec0 = read_section(self.data, 0)
        rec0 = add_exth(rec0, EXTH_CDE_TYPE, b"EBOK")
        rec0 = add_exth(rec0, EXTH_ASIN, asin)
        rec0 = add_exth(rec0, EXTH_ASIN_ALT, asin)
        result = write_section(self.data, 0, rec0)

        kf8 = self._kf8_boundary(read_section(self.data, 0))
        if kf8 is None:
            return False
        kf_rec0 = add_exth(read_section(result, kf8), EXTH_CDE_TYPE, b"EBOK")
        result = write_section(result, kf8, kf_rec0)

        Path(self.filename + "501.mobi").write_bytes(result)
        return True