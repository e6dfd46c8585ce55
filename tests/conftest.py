"""
Shared pytest fixtures for bucket store and service tests.
"""

import os
import tempfile

import pytest

from bucketrpc.models import Query
from bucketrpc.service import Service
from bucketrpc.storage import Store


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def db_path(temp_dir):
    """Provide a path for the store file."""
    return os.path.join(temp_dir, "bolt.db")


@pytest.fixture
def store(db_path):
    """Provide an open Store."""
    with Store.open(db_path) as st:
        yield st


@pytest.fixture
def service(store):
    """Provide a Service over a fresh store."""
    return Service(store)


@pytest.fixture
def nested(service):
    """Provide a service holding buckets a -> b with one key in each."""
    service.create_bucket(Query([], b"a"))
    service.create_bucket(Query([b"a"], b"b"))
    service.set_key(Query([b"a"], b"outer", b"outervalue"))
    service.set_key(Query([b"a", b"b"], b"nested", b"nestedvalue"))
    return service
