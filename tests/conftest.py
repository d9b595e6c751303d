"""Shared fixtures: an in-memory document store and a deterministic clock."""

import threading

import pytest

from docbench.benchmarks.config import BenchmarkConfig, BenchmarkTarget, OperationKind
from docbench.client import DocumentStoreOperationError


class FakeDocumentStoreClient:
    """Thread-safe stand-in for DocumentStoreClient backed by a dict."""

    def __init__(self, fail_every=0):
        self._lock = threading.Lock()
        self._fail_every = fail_every
        self.documents = {}
        self.calls = []
        self.closed = False

    def _call(self, name, key):
        with self._lock:
            self.calls.append((name, key))
            if self._fail_every and len(self.calls) % self._fail_every == 0:
                raise DocumentStoreOperationError(f"{name} failed")

    def ping(self):
        pass

    def insert_one(self, document):
        self._call("insert_one", document["_id"])
        with self._lock:
            self.documents[document["_id"]] = dict(document)

    def find_one(self, key):
        self._call("find_one", key)
        with self._lock:
            return self.documents.get(key)

    def update_one(self, key, fields):
        self._call("update_one", key)
        with self._lock:
            if key not in self.documents:
                return 0
            self.documents[key].update(fields)
            return 1

    def delete_one(self, key):
        self._call("delete_one", key)
        with self._lock:
            return 1 if self.documents.pop(key, None) is not None else 0

    def close(self):
        self.closed = True


class SteppingClock:
    """Returns ``start``, ``start + step``, ... on successive calls."""

    def __init__(self, start=0.0, step=1.0):
        self._lock = threading.Lock()
        self._now = start
        self._step = step

    def __call__(self):
        with self._lock:
            now = self._now
            self._now += self._step
            return now


@pytest.fixture
def fake_client():
    return FakeDocumentStoreClient()


@pytest.fixture
def failing_client():
    return FakeDocumentStoreClient(fail_every=1)


@pytest.fixture
def stepping_clock():
    return SteppingClock()


@pytest.fixture
def target():
    return BenchmarkTarget(name="FerretDB", uri="mongodb://localhost:27017")


@pytest.fixture
def quick_config():
    return BenchmarkConfig(
        concurrent=4,
        doc_size=200,
        duration_seconds=0.3,
        operation=OperationKind.INSERT,
        no_warmup=True,
    )
