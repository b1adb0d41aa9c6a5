"""
Shared test fixtures
"""

import pytest

from textkit.config.config import Config


# ==================== Input Fixtures ====================

@pytest.fixture
def sample_json():
    """Small JSON document with every value type"""
    return '{"a": 1, "b": [true, null, "x"], "c": {"d": 2.5}}'


@pytest.fixture
def sample_sql():
    """Query exercising joins, grouping and ordering"""
    return (
        "select u.id, u.name, count(o.id) as orders from users u "
        "left join orders o on u.id = o.user_id where u.active = 1 "
        "group by u.id, u.name order by orders desc"
    )


@pytest.fixture
def sql_dir(tmp_path):
    """Directory with two SQL files, one of them nested"""
    (tmp_path / "a.sql").write_text("select id from users", encoding="utf-8")
    nested = tmp_path / "reports"
    nested.mkdir()
    (nested / "b.sql").write_text("select count(*) from orders", encoding="utf-8")
    return tmp_path


# ==================== Config Fixtures ====================

@pytest.fixture(autouse=True)
def reset_config():
    """Each test starts from a fresh configuration singleton"""
    Config.reset_instance()
    yield
    Config.reset_instance()
