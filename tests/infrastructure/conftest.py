"""Shared fixtures for the SQLite-backed tests."""

import pytest

from storefront.infrastructure.persistence.database import (
    create_schema,
    create_store_engine,
    session_factory,
)


@pytest.fixture
def sessions(tmp_path):
    engine = create_store_engine(f"sqlite:///{tmp_path / 'store.db'}")
    create_schema(engine)
    yield session_factory(engine)
    engine.dispose()
