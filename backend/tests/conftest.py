"""测试夹具：SQLite 内存数据库"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LLM_API_KEY"] = ""
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from sqlalchemy.orm import sessionmaker

from burnbook import models  # noqa: F401
from burnbook.database import Base, build_engine


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()
