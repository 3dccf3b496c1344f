"""Tests for Settings parsing and validation."""

import pytest
from pydantic import ValidationError

from blog_api.config import Settings


def test_log_level_is_normalized():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_invalid_log_level_rejected():
    with pytest.raises(ValidationError, match="Invalid log_level"):
        Settings(_env_file=None, log_level="chatty")


def test_cors_origins_list_splits_and_strips():
    s = Settings(_env_file=None, cors_origins="http://a.test, http://b.test ,")
    assert s.cors_origins_list == ["http://a.test", "http://b.test"]


def test_port_out_of_range_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, backend_port=80)


def test_database_url_read_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./other.db")
    assert Settings(_env_file=None).database_url == "sqlite+aiosqlite:///./other.db"
