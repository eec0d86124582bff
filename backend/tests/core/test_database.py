# tests/core/test_database.py
import pytest

from taskminder.core.database import DEFAULT_DB_NAME, MongoDbContext, parse_db_name

@pytest.mark.parametrize("uri,expected", [
    ("mongodb://localhost:27017/tasks", "tasks"),
    ("mongodb://user:pw@db.example:27017/tasks?authSource=admin", "tasks"),
    ("mongodb://localhost:27017/", DEFAULT_DB_NAME),
    ("mongodb://localhost:27017", DEFAULT_DB_NAME),
])
def test_parse_db_name(uri, expected):
    assert parse_db_name(uri) == expected

def test_get_db_before_connect_raises():
    with pytest.raises(RuntimeError):
        MongoDbContext("mongodb://localhost:27017/tasks").get_db()

def test_explicit_db_name_wins():
    assert MongoDbContext("mongodb://localhost:27017/tasks", db_name="other").db_name == "other"
