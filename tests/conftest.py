"""
tests/conftest.py
Shared fixtures for the modelgen test suite.

No external mocking libraries are used: dialect behaviour is stubbed with a
small ``DialectOptions`` subclass, and introspection runs against a real
SQLite database file created inside pytest's ``tmp_path``.
"""

from __future__ import annotations

import pathlib
from typing import Any, Callable, Dict, Iterator, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from modelgen.dialects.base import DialectOptions, StringBounds, parse_declared_length
from modelgen.models import ColumnDescriptor, TableData


# ---------------------------------------------------------------------------
# Mock dialect
# ---------------------------------------------------------------------------


class MockDialectOptions(DialectOptions):
    """
    Schema-aware stand-in dialect.

    VARCHAR / CHAR are bounded (255 when no length is declared), TEXT is
    unbounded, everything else is not a string.
    """

    name = "mock"
    has_schema = True

    def get_foreign_keys_query(self, table_name: str, schema_name: Optional[str]) -> str:
        return ""

    def count_trigger_query(self, table_name: str, schema_name: Optional[str]) -> str:
        return ""

    def show_views_query(self, schema_name: Optional[str] = None) -> str:
        return ""

    def is_serial_key(self, record: Any) -> bool:
        return False

    def get_string_bounds(self, declared_type: Optional[str]) -> Optional[StringBounds]:
        if not declared_type:
            return None
        upper: str = declared_type.upper()
        size: Optional[int] = parse_declared_length(declared_type)
        if upper.startswith(("VARCHAR", "CHAR")):
            return StringBounds(0, size or 255)
        if upper.startswith("TEXT"):
            return StringBounds(0, None)
        return None


@pytest.fixture()
def mock_dialect() -> MockDialectOptions:
    return MockDialectOptions()


# ---------------------------------------------------------------------------
# TableData factories
# ---------------------------------------------------------------------------


def build_table_data(
    fields: Dict[str, Dict[str, Any]], table_name: str = "test_table"
) -> TableData:
    """One-table ``TableData`` from ``{column: ColumnDescriptor kwargs}``."""
    return TableData(
        tables={
            table_name: {name: ColumnDescriptor(**kwargs) for name, kwargs in fields.items()}
        },
        foreign_keys={table_name: []},
    )


@pytest.fixture()
def make_table_data() -> Callable[..., TableData]:
    return build_table_data


@pytest.fixture()
def blog_table_data() -> TableData:
    """authors ← posts, plus a posts ↔ tags junction table (schemaless keys)."""
    return TableData(
        tables={
            "authors": {
                "id": ColumnDescriptor(type="INTEGER", primary_key=True, allow_null=False),
                "name": ColumnDescriptor(type="VARCHAR(100)", allow_null=False),
                "bio": ColumnDescriptor(type="TEXT"),
            },
            "posts": {
                "id": ColumnDescriptor(type="INTEGER", primary_key=True, allow_null=False),
                "author_id": ColumnDescriptor(
                    type="INTEGER", allow_null=False, is_foreign_key=True
                ),
                "title": ColumnDescriptor(type="VARCHAR(200)", allow_null=False),
            },
            "tags": {
                "id": ColumnDescriptor(type="INTEGER", primary_key=True, allow_null=False),
                "label": ColumnDescriptor(type="VARCHAR(50)", allow_null=False, unique=True),
            },
            "post_tags": {
                "post_id": ColumnDescriptor(
                    type="INTEGER", primary_key=True, allow_null=False, is_foreign_key=True
                ),
                "tag_id": ColumnDescriptor(
                    type="INTEGER", primary_key=True, allow_null=False, is_foreign_key=True
                ),
            },
        },
        foreign_keys={
            "authors": [],
            "posts": [
                {
                    "constraint_name": "posts_0",
                    "source_table": "posts",
                    "source_column": "author_id",
                    "target_table": "authors",
                    "target_column": "id",
                }
            ],
            "tags": [],
            "post_tags": [
                {
                    "constraint_name": "post_tags_0",
                    "source_table": "post_tags",
                    "source_column": "post_id",
                    "target_table": "posts",
                    "target_column": "id",
                },
                {
                    "constraint_name": "post_tags_1",
                    "source_table": "post_tags",
                    "source_column": "tag_id",
                    "target_table": "tags",
                    "target_column": "id",
                },
            ],
        },
        has_trigger_tables={"posts": True},
    )


# ---------------------------------------------------------------------------
# SQLite database
# ---------------------------------------------------------------------------

BLOG_DDL: tuple = (
    """
    CREATE TABLE authors (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        bio TEXT,
        country_code CHAR(2)
    )
    """,
    """
    CREATE TABLE posts (
        id INTEGER PRIMARY KEY,
        author_id INTEGER NOT NULL REFERENCES authors (id),
        title VARCHAR(200) NOT NULL,
        status VARCHAR(20) DEFAULT 'draft',
        body TEXT
    )
    """,
    "CREATE INDEX ix_posts_title ON posts (title)",
    """
    CREATE TABLE tags (
        id INTEGER PRIMARY KEY,
        label VARCHAR(50) NOT NULL
    )
    """,
    """
    CREATE TABLE post_tags (
        post_id INTEGER NOT NULL REFERENCES posts (id),
        tag_id INTEGER NOT NULL REFERENCES tags (id),
        PRIMARY KEY (post_id, tag_id)
    )
    """,
    """
    CREATE TRIGGER posts_touch AFTER UPDATE ON posts
    BEGIN
        SELECT 1;
    END
    """,
    "CREATE VIEW published_posts AS SELECT id, title FROM posts WHERE status = 'published'",
)


@pytest.fixture()
def sqlite_path(tmp_path: pathlib.Path) -> pathlib.Path:
    """A SQLite database file holding the blog schema."""
    path: pathlib.Path = tmp_path / "blog.db"
    engine: Engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        for statement in BLOG_DDL:
            conn.exec_driver_sql(statement)
    engine.dispose()
    return path


@pytest.fixture()
def sqlite_engine(sqlite_path: pathlib.Path) -> Iterator[Engine]:
    engine: Engine = create_engine(f"sqlite:///{sqlite_path}")
    yield engine
    engine.dispose()
