from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from userstamp import config as config_module

from ._models import Base, Person, User

DEFAULT_TEST_DB_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture(scope="session")
def db_url() -> str:
    """
    Database URL for tests.

    Set USERSTAMP_TEST_DB_URL to run against a real server; the default is an
    in-memory SQLite database.
    """
    return os.environ.get("USERSTAMP_TEST_DB_URL", DEFAULT_TEST_DB_URL)


@pytest.fixture(scope="session")
def engine(db_url: str) -> Iterator[Engine]:
    eng = create_engine(db_url)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine: Engine) -> Iterator[Session]:
    """A session over freshly created tables, with users 7 and 9 and person 3."""
    Base.metadata.create_all(engine)
    with Session(engine) as sess:
        sess.add_all(
            [
                User(id=7, name="alice"),
                User(id=9, name="bob"),
                Person(id=3, name="carol"),
            ]
        )
        sess.commit()
        yield sess
        sess.rollback()
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _reset_stampers() -> Iterator[None]:
    yield
    User.reset_stamper()
    Person.reset_stamper()


@pytest.fixture
def unsealed_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Forget the process-wide configuration for the duration of a test."""
    monkeypatch.setattr(config_module, "_config", None)
