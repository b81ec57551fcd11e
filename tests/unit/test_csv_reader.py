from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from headset_qr.csvio.reader import CsvParseError, read_table_rows


def test_reads_cells_as_text(write_csv):
    path = write_csv("roster.csv", "group,period,headset\n0004,3,048\n")
    assert read_table_rows(path) == [["group", "period", "headset"], ["0004", "3", "048"]]


def test_blank_lines_are_dropped(write_csv):
    path = write_csv("roster.csv", "a,b\n\n\n1,2\n,\n\n")
    assert read_table_rows(path) == [["a", "b"], ["1", "2"]]


def test_ragged_rows_are_kept(write_csv):
    text = "Group code,0001,,0002\nUsernames,alice,bob,carol,extra\nx\n"
    rows = read_table_rows(write_csv("matrix.csv", text))
    assert rows == [
        ["Group code", "0001", "", "0002"],
        ["Usernames", "alice", "bob", "carol", "extra"],
        ["x"],
    ]


def test_quoted_commas_and_na_strings(write_csv):
    path = write_csv("roster.csv", 'group,prefix\n"A, B",NA\n')
    assert read_table_rows(path) == [["group", "prefix"], ["A, B", "NA"]]


def test_utf8_bom_is_stripped(temp_workdir: Path):
    path = temp_workdir / "data" / "bom.csv"
    path.write_bytes("\ufeffgroup,period\nG,1\n".encode("utf-8"))
    assert read_table_rows(path)[0] == ["group", "period"]


def test_empty_file(write_csv):
    assert read_table_rows(write_csv("empty.csv", "")) == []


def test_missing_file(temp_workdir: Path):
    with pytest.raises(CsvParseError, match="not found"):
        read_table_rows(temp_workdir / "nope.csv")


def test_unsupported_suffix(temp_workdir: Path):
    path = temp_workdir / "roster.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(CsvParseError, match="unsupported"):
        read_table_rows(path)


def test_undecodable_file_raises_parse_error(temp_workdir: Path):
    path = temp_workdir / "bad.csv"
    path.write_bytes(b"group,period\n\xff\xfe\xfa,1\n")
    with pytest.raises(CsvParseError):
        read_table_rows(path)


def test_reads_first_xlsx_sheet(temp_workdir: Path):
    path = temp_workdir / "roster.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame([["group", "period", "headset"], ["0004", "3", "7"]]).to_excel(
            writer, sheet_name="Roster", header=False, index=False
        )
    assert read_table_rows(path) == [["group", "period", "headset"], ["0004", "3", "7"]]
