"""Pytest fixtures for permstack tests."""

import pytest

from permstack.domain.entities import Permission

from fakes import NOW, FakeStore, make_uow_factory


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def uow_factory(store: FakeStore):
    return make_uow_factory(store)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def documents_read(store: FakeStore) -> Permission:
    """Registered Documents.Read permission."""
    return store.add_permission("Documents", "Read")
