import os
import tempfile
import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# The application engine is built at import time; point it at a scratch file.
_scratch_dir = Path(tempfile.mkdtemp(prefix="stockbook-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_scratch_dir / 'app.db'}"

from stockbook.database import get_db, init_db, make_engine, make_session_factory  # noqa: E402
from stockbook.services.counter_store import (  # noqa: E402
    AtomicCounterStore,
    CounterKey,
    SqlCounterStore,
    StorageUnavailableError,
)


class FlakyStore(AtomicCounterStore):
    """Wraps a real store and fails the next `failures` increments."""

    def __init__(self, inner: AtomicCounterStore, failures: int = 0):
        self.inner = inner
        self.failures = failures
        self.failed_calls = 0
        self._lock = threading.Lock()

    def find_one_and_increment(self, key: CounterKey) -> int:
        with self._lock:
            fail = self.failures > 0
            if fail:
                self.failures -= 1
                self.failed_calls += 1
        if fail:
            raise StorageUnavailableError(f"Simulated outage for {key}")
        return self.inner.find_one_and_increment(key)

    def current_value(self, key: CounterKey) -> int:
        return self.inner.current_value(key)


@pytest.fixture()
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'counters.db'}"


@pytest.fixture()
def engine(database_url):
    engine = make_engine(database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def store(session_factory):
    return SqlCounterStore(session_factory)


@pytest.fixture()
def client(store, session_factory):
    from stockbook.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        finally:
            db.close()

    previous_store = app.state.counter_store
    app.state.counter_store = store
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    app.state.counter_store = previous_store
