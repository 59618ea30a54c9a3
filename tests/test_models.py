"""
tests/test_models.py
TableData primitives, generation options and the diagnostics accumulator.
"""

from __future__ import annotations

import datetime

import pytest

from modelgen.diagnostics import ConfigurationError, Diagnostics, ModelgenError
from modelgen.models import (
    ColumnDescriptor,
    ForeignKeyRow,
    GenerationOptions,
    TableData,
    make_table_key,
    split_table_key,
)


class TestTableKeys:
    def test_make(self) -> None:
        assert make_table_key("users") == "users"
        assert make_table_key("users", "public") == "public.users"
        assert make_table_key("users", "") == "users"

    def test_split(self) -> None:
        assert split_table_key("public.users", True) == ("public", "users")
        assert split_table_key("public.users", False) == (None, "public.users")
        assert split_table_key("users", True) == (None, "users")


class TestTableData:
    def test_foreign_key_lookup(self, blog_table_data: TableData) -> None:
        fk = blog_table_data.foreign_key_for("post_tags", "tag_id")
        assert fk is not None and fk.target_table == "tags"
        assert blog_table_data.foreign_key_for("posts", "title") is None
        assert blog_table_data.foreign_key_for("missing", "id") is None

    def test_table_keys(self, blog_table_data: TableData) -> None:
        assert blog_table_data.table_keys == ["authors", "posts", "tags", "post_tags"]

    def test_column_as_record(self) -> None:
        column = ColumnDescriptor(type="INTEGER", primary_key=True, extra="auto_increment")
        assert column.as_record() == {
            "type": "INTEGER",
            "primary_key": True,
            "default_value": None,
            "extra": "auto_increment",
            "is_identity": False,
        }

    def test_column_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValueError):
            ColumnDescriptor(type="INTEGER", length=4)

    def test_foreign_key_row_requires_target(self) -> None:
        with pytest.raises(ValueError):
            ForeignKeyRow(source_table="a", source_column="b_id", target_table="", target_column="id")


class TestGenerationOptions:
    def test_load_passthrough(self) -> None:
        options = GenerationOptions()
        assert GenerationOptions.load(options) is options

    def test_load_none(self) -> None:
        assert GenerationOptions.load(None).include_relations is True

    def test_schema_alias(self) -> None:
        assert GenerationOptions.load({"schema": "sales"}).schema_name == "sales"
        assert GenerationOptions.load({"schema_name": "sales"}).schema_name == "sales"

    def test_invalid(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            GenerationOptions.load({"indent_size": "wide"})
        assert exc_info.value.code == "INVALID_OPTIONS"

    def test_additional_must_render_as_literal(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            GenerationOptions.load({"additional": {"comment": datetime.date(2024, 1, 1)}})
        assert exc_info.value.code == "INVALID_OPTIONS"
        assert exc_info.value.context == {"option": "additional", "key": "comment"}

    def test_additional_nested_literals(self) -> None:
        additional = {"comment": "Blog", "info": {"owner": ["ops", 1, None]}}
        assert GenerationOptions.load({"additional": additional}).additional == additional


class TestDiagnostics:
    def test_accumulates(self) -> None:
        diagnostics = Diagnostics()
        diagnostics.add_warning("A", "first", {"table": "t"})
        diagnostics.add_info("B", "second")
        assert len(diagnostics) == 2
        assert diagnostics.codes() == ["A", "B"]
        assert [d.code for d in diagnostics.warnings] == ["A"]
        assert diagnostics.has_warnings

    def test_contains(self) -> None:
        diagnostics = Diagnostics()
        diagnostics.add_warning("A", "x", {"table": "t"})
        assert diagnostics.contains("A")
        assert diagnostics.contains("A", {"table": "t"})
        assert not diagnostics.contains("A", {"table": "u"})
        assert not diagnostics.contains("B")

    def test_merge(self) -> None:
        left, right = Diagnostics(), Diagnostics()
        left.add_warning("A", "x")
        right.add_warning("B", "y")
        left.merge(right)
        assert left.codes() == ["A", "B"]

    def test_report(self) -> None:
        diagnostics = Diagnostics()
        diagnostics.add_warning("DANGLING_FOREIGN_KEY", "orders.customer_id", {"target": "c"})
        diagnostics.add_info("NOTE", "hidden")
        report = diagnostics.format_report()
        assert "[DANGLING_FOREIGN_KEY] orders.customer_id" in report
        assert "target: c" in report
        assert "NOTE" not in report
        assert "NOTE" in diagnostics.format_report(include_info=True)

    def test_warning_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING", logger="modelgen"):
            Diagnostics().add_warning("CODE", "message")
        assert "CODE: message" in caplog.text

    def test_error_str(self) -> None:
        error = ConfigurationError("UNSUPPORTED_DIALECT", "nope", {"dialect": "x"})
        assert isinstance(error, ModelgenError)
        assert str(error) == "UNSUPPORTED_DIALECT: nope"
        assert error.context == {"dialect": "x"}
