"""Test Scripts 스키마 초기화 스크립트 동작을 검증하는 자동화 테스트입니다."""

from sqlalchemy import inspect

from agora.models.user import User
from tests.conftest import engine


def test_init_db_reset_recreates_schema(monkeypatch, db, seed_users):
    from scripts import init_db as script

    monkeypatch.setattr(script, "engine", engine)
    monkeypatch.setattr("agora.main.engine", engine)
    assert db.query(User).count() == 4
    db.close()

    script.init_db(reset=True)

    assert "content_report" in inspect(engine).get_table_names()
    assert db.query(User).count() == 0
