"""Unit tests for the shared glossary CSV helpers."""

from __future__ import annotations

import pytest

from glossary_guard.checks.csvdata import (
    GlossaryFormatError,
    format_limited,
    normalize_column,
    parse_table,
    read_records,
    split_lines,
    write_records,
)


@pytest.mark.unit
def test_read_records_tracks_start_line_of_multiline_records() -> None:
    text = 'term;description\n"multi\nline";d\nnext;x\n'

    rows = read_records(text)

    assert [row.line for row in rows] == [1, 2, 4]
    assert rows[1].cells == ["multi\nline", "d"]


@pytest.mark.unit
def test_read_records_reports_blank_lines_as_empty_rows() -> None:
    rows = read_records("term;description\n\nsun;star\n")

    assert [row.cells for row in rows] == [["term", "description"], [], ["sun", "star"]]


@pytest.mark.unit
def test_read_records_raises_format_error_on_bad_quoting() -> None:
    with pytest.raises(GlossaryFormatError, match="line"):
        read_records('term;description\n"open;x\n')


@pytest.mark.unit
def test_parse_table_rejects_empty_buffer() -> None:
    with pytest.raises(GlossaryFormatError, match="file is empty"):
        parse_table(b"\n\n")


@pytest.mark.unit
def test_parse_table_keeps_crlf_terminator_and_finds_columns_case_insensitively() -> None:
    table = parse_table("\ufeffTerm;Description;EN\r\nsun;star;Sun\r\n".encode())

    assert table.terminator == "\r\n"
    assert table.columns == ["term", "description", "en"]
    assert table.column_index("TERM") == 0
    assert table.column_index("fr") is None
    assert table.to_bytes() == "\ufeffTerm;Description;EN\r\nsun;star;Sun\r\n".encode()


@pytest.mark.unit
def test_split_lines_has_no_phantom_trailing_line() -> None:
    assert split_lines("a\r\nb\r\n") == ["a", "b"]
    assert split_lines("a\n\nb") == ["a", "", "b"]
    assert split_lines("") == []


@pytest.mark.unit
def test_write_records_quotes_cells_containing_delimiter() -> None:
    assert write_records([["term", "description"], ["a;b", "c"]]) == b'term;description\n"a;b";c\n'


@pytest.mark.unit
def test_normalize_column_strips_bom_and_case() -> None:
    assert normalize_column("\ufeff Term ") == "term"


@pytest.mark.unit
def test_format_limited_notes_omitted_items() -> None:
    items = [str(number) for number in range(1, 14)]

    assert format_limited(items[:2]) == "1, 2"
    assert format_limited(items) == "1, 2, 3, 4, 5, 6, 7, 8, 9, 10, …and 3 more"
