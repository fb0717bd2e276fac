#!/usr/bin/env python3
"""
Document Number Stress Check

Fires concurrent allocations at one counter of the configured database and
reports duplicates and gaps.
Usage:
    python scripts/stress_allocate.py
    python scripts/stress_allocate.py --tenant load-test --calls 500 --workers 32
"""

import argparse
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from stockbook.config import settings  # noqa: E402
from stockbook.database import init_db, make_engine, make_session_factory  # noqa: E402
from stockbook.services.counter_store import SqlCounterStore  # noqa: E402
from stockbook.services.sequence_service import (  # noqa: E402
    SequenceAllocator,
    StorageUnavailableError,
)


def allocate_once(allocator: SequenceAllocator, tenant: str, period: str):
    try:
        return allocator.allocate_sequence(tenant, period)
    except StorageUnavailableError:
        return None


def main():
    parser = argparse.ArgumentParser(description="Stress test document numbering")
    parser.add_argument(
        "--database-url",
        default=settings.DATABASE_URL,
        help="Database URL (default: DATABASE_URL setting)",
    )
    parser.add_argument(
        "--tenant",
        default=f"stress-{int(time.time())}",
        help="Tenant id to allocate for (default: fresh tenant)",
    )
    parser.add_argument(
        "--period", default="2025", help="Counter period (default: 2025)"
    )
    parser.add_argument(
        "--calls", type=int, default=100, help="Number of allocations (default: 100)"
    )
    parser.add_argument(
        "--workers", type=int, default=16, help="Concurrent workers (default: 16)"
    )
    args = parser.parse_args()

    engine = make_engine(args.database_url)
    init_db(engine)
    store = SqlCounterStore(make_session_factory(engine))
    allocator = SequenceAllocator(store, "stress")

    print(f"Allocating {args.calls} numbers for {args.tenant}/{args.period}...")
    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=args.workers) as pool:
        results = list(
            pool.map(
                lambda _: allocate_once(allocator, args.tenant, args.period),
                range(args.calls),
            )
        )
    elapsed = time.perf_counter() - start

    issued = [r for r in results if r is not None]
    failed = len(results) - len(issued)
    duplicates = len(issued) - len(set(issued))
    missing = sorted(set(range(1, len(issued) + 1)) - set(issued))

    print()
    print("=" * 50)
    print(f"Issued:     {len(issued)} in {elapsed:.2f}s")
    print(f"Failed:     {failed}")
    print(f"Duplicates: {duplicates}")
    print(f"Gaps:       {missing[:20]}{' ...' if len(missing) > 20 else ''}")

    engine.dispose()
    if duplicates:
        sys.exit(1)


if __name__ == "__main__":
    main()
