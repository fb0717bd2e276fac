import multiprocessing
from concurrent.futures import ThreadPoolExecutor

import pytest

from stockbook.services.counter_store import CounterKey, SqlCounterStore
from stockbook.services.sequence_service import (
    InvalidArgumentError,
    SequenceAllocator,
    StorageUnavailableError,
)
from stockbook.database import init_db, make_engine, make_session_factory
from tests.conftest import FlakyStore


@pytest.fixture()
def invoices(store):
    return SequenceAllocator(store, "invoices")


def test_first_allocations_are_formatted(invoices):
    assert invoices.allocate("u1", 2025, "INV-", 4) == "INV-2025-0001"
    assert invoices.allocate("u1", 2025, "INV-", 4) == "INV-2025-0002"


def test_sequential_calls_strictly_increase(invoices):
    values = [invoices.allocate_sequence("u1", 2025) for _ in range(25)]
    assert values == list(range(1, 26))


def test_periods_are_isolated(invoices):
    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0001"
    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0002"
    assert invoices.allocate("u1", 2026, "INV-") == "INV-2026-0001"
    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0003"


def test_tenants_are_isolated(invoices):
    assert invoices.allocate_sequence("u1", 2025) == 1
    assert invoices.allocate_sequence("u1", 2025) == 2
    assert invoices.allocate_sequence("u2", 2025) == 1
    assert invoices.allocate_sequence("u1", 2025) == 3


def test_series_are_isolated(store):
    invoices = SequenceAllocator(store, "invoices")
    sales = SequenceAllocator(store, "sales")

    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0001"
    assert sales.allocate("u1", 2025, "SALE-") == "SALE-2025-0001"
    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0002"


def test_int_and_string_periods_share_a_counter(invoices):
    assert invoices.allocate_sequence("u1", 2025) == 1
    assert invoices.allocate_sequence("u1", "2025") == 2
    assert invoices.allocate_sequence(" u1 ", " 2025 ") == 3


def test_non_yearly_series_omits_period(store):
    purchases = SequenceAllocator(store, "purchases")
    assert purchases.allocate("u1", "all", "PO-", include_period=False) == "PO-0001"
    assert purchases.allocate("u1", "all", "PO-", include_period=False) == "PO-0002"


def test_custom_pad_width(invoices):
    assert invoices.allocate("u1", 2025, "INV-", pad_width=6) == "INV-2025-000001"


@pytest.mark.parametrize("tenant_id", [None, "", "   ", True, 1.5, ["u1"], "t" * 65])
def test_invalid_tenant_is_rejected(invoices, store, tenant_id):
    with pytest.raises(InvalidArgumentError):
        invoices.allocate(tenant_id, 2025, "INV-")
    assert store.current_value(CounterKey("u1", "invoices", "2025")) == 0


@pytest.mark.parametrize(
    "period", [None, "", "  ", "-", "20 25", -1, False, 2025.0, "9" * 17, 10**20]
)
def test_invalid_period_is_rejected(invoices, period):
    with pytest.raises(InvalidArgumentError):
        invoices.allocate("u1", period, "INV-")


@pytest.mark.parametrize("pad_width", [0, -4, "4", None, True])
def test_invalid_pad_width_consumes_nothing(invoices, pad_width):
    with pytest.raises(InvalidArgumentError):
        invoices.allocate("u1", 2025, "INV-", pad_width)
    assert invoices.allocate_sequence("u1", 2025) == 1


def test_blank_series_is_rejected(store):
    with pytest.raises(InvalidArgumentError):
        SequenceAllocator(store, "  ")


def test_peek_does_not_consume(invoices):
    assert invoices.peek("u1", 2025, "INV-") == "INV-2025-0001"
    assert invoices.peek("u1", 2025, "INV-") == "INV-2025-0001"
    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0001"
    assert invoices.peek("u1", 2025, "INV-") == "INV-2025-0002"


def test_concurrent_allocations_are_unique(invoices):
    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(
            pool.map(lambda _: invoices.allocate_sequence("u1", 2025), range(100))
        )

    assert len(results) == 100
    assert sorted(results) == list(range(1, 101))


def test_concurrent_tenants_do_not_interfere(invoices):
    tenants = ["u1", "u2"] * 50
    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(
            pool.map(lambda t: (t, invoices.allocate_sequence(t, 2025)), tenants)
        )

    for tenant in ("u1", "u2"):
        values = sorted(v for t, v in results if t == tenant)
        assert values == list(range(1, 51))


def test_counter_survives_restart(database_url):
    engine = make_engine(database_url)
    init_db(engine)
    first = SequenceAllocator(SqlCounterStore(make_session_factory(engine)), "invoices")
    assert first.allocate("u1", 2025, "INV-") == "INV-2025-0001"
    assert first.allocate("u1", 2025, "INV-") == "INV-2025-0002"
    engine.dispose()

    engine = make_engine(database_url)
    second = SequenceAllocator(SqlCounterStore(make_session_factory(engine)), "invoices")
    assert second.allocate("u1", 2025, "INV-") == "INV-2025-0003"
    engine.dispose()


def test_failed_increment_does_not_consume_a_number(store):
    flaky = FlakyStore(store)
    invoices = SequenceAllocator(flaky, "invoices")

    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0001"

    flaky.failures = 2
    for _ in range(2):
        with pytest.raises(StorageUnavailableError):
            invoices.allocate("u1", 2025, "INV-")

    assert flaky.failed_calls == 2
    assert invoices.allocate("u1", 2025, "INV-") == "INV-2025-0002"


def test_concurrent_allocations_with_failures_have_no_duplicates(store):
    flaky = FlakyStore(store, failures=10)
    invoices = SequenceAllocator(flaky, "invoices")

    def attempt(_):
        try:
            return invoices.allocate_sequence("u1", 2025)
        except StorageUnavailableError:
            return None

    with ThreadPoolExecutor(max_workers=20) as pool:
        results = list(pool.map(attempt, range(100)))

    issued = [r for r in results if r is not None]
    assert results.count(None) == 10
    assert sorted(issued) == list(range(1, 91))


def _allocate_in_process(database_url: str, count: int) -> list[int]:
    engine = make_engine(database_url)
    try:
        allocator = SequenceAllocator(
            SqlCounterStore(make_session_factory(engine)), "invoices"
        )
        return [allocator.allocate_sequence("u1", 2025) for _ in range(count)]
    finally:
        engine.dispose()


def test_concurrent_processes_get_unique_numbers(engine, database_url):
    ctx = multiprocessing.get_context("spawn")
    with ctx.Pool(processes=4) as pool:
        batches = pool.starmap(_allocate_in_process, [(database_url, 25)] * 4)

    results = [value for batch in batches for value in batch]
    assert sorted(results) == list(range(1, 101))
    for batch in batches:
        assert batch == sorted(batch)
