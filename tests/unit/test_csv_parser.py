from __future__ import annotations

import logging

import pytest

from inventory_import.parsing.csv_parser import CsvStructureError, parse_csv_text, split_fields


def test_parse_basic_rows_in_order():
    sheet = parse_csv_text("a,b\n1,2\n3,4\n")
    assert sheet.headers == ["a", "b"]
    assert sheet.rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]
    assert sheet.skipped_lines == []


def test_blank_lines_are_ignored_and_values_trimmed():
    sheet = parse_csv_text("\n a , b \n\n  x ,  y  \n   \n")
    assert sheet.headers == ["a", "b"]
    assert sheet.rows == [{"a": "x", "b": "y"}]


def test_surrounding_quotes_stripped_once():
    assert split_fields('"a", ""b"" ,c') == ["a", '"b"', "c"]


def test_empty_cell_becomes_none():
    sheet = parse_csv_text("a,b\n,2\n")
    assert sheet.rows == [{"a": None, "b": "2"}]


def test_mismatched_rows_dropped_with_line_numbers(caplog):
    text = "a,b\n1,2\n1,2,3\n\n4\n5,6\n"
    with caplog.at_level(logging.WARNING):
        sheet = parse_csv_text(text, source="upload.csv")
    assert sheet.rows == [{"a": "1", "b": "2"}, {"a": "5", "b": "6"}]
    # 物理行番号 (空行も数える)
    assert sheet.skipped_lines == [3, 5]
    assert "upload.csv" in caplog.text
    assert "dropped 2 row(s)" in caplog.text


def test_bom_is_removed_from_first_header():
    sheet = parse_csv_text("\ufeffPallet,Label\nP-1,x\n")
    assert sheet.headers == ["Pallet", "Label"]


def test_crlf_line_endings_are_trimmed():
    sheet = parse_csv_text("a,b\r\n1,2\r\n")
    assert sheet.rows == [{"a": "1", "b": "2"}]


@pytest.mark.parametrize("text", ["", "\n\n", "a,b\n", "   \na,b\n  \n"])
def test_structural_error_when_less_than_two_lines(text):
    with pytest.raises(CsvStructureError):
        parse_csv_text(text)


def test_duplicate_header_later_column_wins():
    sheet = parse_csv_text("sku,sku\nA,B\n")
    assert sheet.headers == ["sku", "sku"]
    assert sheet.rows == [{"sku": "B"}]


def test_all_rows_malformed_yields_empty_batch():
    sheet = parse_csv_text("a,b\n1\n2\n")
    assert sheet.rows == []
    assert sheet.skipped_lines == [2, 3]
