"""Tests for CLI table and JSON output."""

from __future__ import annotations

import io
import json

from cli.output import format_cell, names, print_details, print_json, print_table
from specter.services.resource_service import Column


class TestFormatCell:
    def test_empty_values(self) -> None:
        assert format_cell(None) == "-"
        assert format_cell("") == "-"

    def test_bool(self) -> None:
        assert format_cell(True) == "yes"
        assert format_cell(False) == "no"

    def test_short_width_cuts(self) -> None:
        assert format_cell("2024-06-01T09:30:00.000Z", 10) == "2024-06-01"

    def test_long_width_ellipsis(self) -> None:
        assert format_cell("x" * 60, 50) == "x" * 47 + "..."

    def test_fits(self) -> None:
        assert format_cell("short", 50) == "short"


class TestPrintTable:
    def test_aligned_columns(self) -> None:
        out = io.StringIO()
        items = [{"id": "1", "name": "News"}, {"id": "22", "name": None}]
        print_table(items, (Column("ID", "id"), Column("NAME", "name")), out)
        assert out.getvalue().splitlines() == ["ID  NAME", "1   News", "22  -"]

    def test_header_only(self) -> None:
        out = io.StringIO()
        print_table([], (Column("ID", "id"),), out)
        assert out.getvalue() == "ID\n"


class TestPrintDetails:
    def test_skips_empty(self) -> None:
        out = io.StringIO()
        print_details([("ID", "1"), ("Bio", ""), ("Title", "Hi")], out)
        assert out.getvalue().splitlines() == ["ID:    1", "Title: Hi"]

    def test_keep_empty(self) -> None:
        out = io.StringIO()
        print_details([("Logo", None)], out, skip_empty=False)
        assert out.getvalue() == "Logo: -\n"


class TestJsonAndNames:
    def test_print_json(self) -> None:
        out = io.StringIO()
        print_json({"a": [1]}, out)
        assert json.loads(out.getvalue()) == {"a": [1]}

    def test_names(self) -> None:
        assert names([{"name": "go"}, {"name": "cli"}]) == "go, cli"
        assert names(None) == ""
