"""
Pytest configuration and shared fixtures.
"""

import pytest
from fastapi.testclient import TestClient

from api.database import BookStore
from api.main import app, get_book_store
from api.models import IncomingRequest


@pytest.fixture
def store():
    """Create an empty record store."""
    return BookStore()


@pytest.fixture
def client(store):
    """Create a test client bound to a fresh store."""
    app.dependency_overrides[get_book_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_payload():
    """Payload for a book that is half read."""
    return {
        "name": "Buku A",
        "year": 2010,
        "author": "John Doe",
        "summary": "Lorem ipsum dolor sit amet",
        "publisher": "Dicoding Indonesia",
        "pageCount": 100,
        "readPage": 25,
        "reading": False,
    }


@pytest.fixture
def finished_payload():
    """Payload for a book read to the last page."""
    return {
        "name": "A",
        "year": 2020,
        "author": "X",
        "summary": "s",
        "publisher": "P",
        "pageCount": 100,
        "readPage": 100,
        "reading": False,
    }


@pytest.fixture
def make_request():
    """Build an IncomingRequest with sensible defaults."""
    def _make(method="GET", path="/books", params=None, query=None, payload=None):
        return IncomingRequest(
            method=method,
            path=path,
            params=params or {},
            query=query or {},
            payload=payload,
        )
    return _make
