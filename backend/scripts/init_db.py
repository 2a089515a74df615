"""Agora 스키마를 생성합니다. ``--reset``을 주면 기존 테이블을 모두 지우고 다시 만듭니다."""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agora.database import Base, engine  # noqa: E402
from agora.main import ensure_schema  # noqa: E402

logger = logging.getLogger("agora.scripts.init_db")


def init_db(reset: bool = False):
    if reset:
        logger.warning("dropping all tables on %s", engine.url.render_as_string(hide_password=True))
        Base.metadata.drop_all(bind=engine)
    ensure_schema()
    logger.info("tables: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Agora 데이터베이스 스키마 생성")
    parser.add_argument("--reset", action="store_true", help="기존 테이블을 삭제한 뒤 다시 생성")
    init_db(parser.parse_args().reset)
