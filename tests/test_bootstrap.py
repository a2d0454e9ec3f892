from __future__ import annotations

from src.site_progress.site_progress.database.bootstrap import iter_sql_statements
from src.site_progress.site_progress.database.connection import DBConfig, DatabaseConnection


def test_iter_sql_statements_skips_comments_and_respects_quotes():
    sql = """
    -- a comment; with a semicolon
    INSERT INTO t(v) VALUES('a;b');
    INSERT INTO t(v) VALUES('it\\'s -- fine');
    SELECT 1
    """

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t(v) VALUES('a;b')",
        "INSERT INTO t(v) VALUES('it\\'s -- fine')",
        "SELECT 1",
    ]


def test_iter_sql_statements_ignores_empty_statements():
    assert list(iter_sql_statements(";;\n-- only a comment\n")) == []


def test_db_config_from_mapping_fills_defaults():
    config = DBConfig.from_mapping({"user": "svc", "port": "3307"})

    assert config == DBConfig(host="localhost", port=3307, user="svc", password="", database="site_progress_db")
    assert config.describe() == "svc@localhost:3307/site_progress_db"
    assert "database" not in config.connect_kwargs(with_database=False)


def test_connection_factory_is_rebuilt_for_new_config():
    a = DBConfig.from_mapping({"database": "a"})
    b = DBConfig.from_mapping({"database": "b"})

    first = DatabaseConnection.get_instance(a)
    assert DatabaseConnection.get_instance(a) is first
    assert DatabaseConnection.get_instance(b).config.database == "b"
