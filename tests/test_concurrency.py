"""
Concurrency tests: many callers sharing one Service.
"""

import asyncio
import random
from concurrent.futures import ThreadPoolExecutor

from bucketrpc.models import ErrorKind, Query
from bucketrpc.service import Service
from bucketrpc.storage import Store


async def run(service_call, query: Query):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, service_call, query)


class TestConcurrentService:
    """Service operations issued from many workers at once."""

    async def test_many_concurrent_writers(self, db_path):
        """Test that concurrent writers to different buckets lose nothing."""
        with Store.open(db_path, timeout=10.0) as store:
            service = Service(store)
            for writer_id in range(8):
                service.create_bucket(Query([], f"w{writer_id}".encode()))

            async def writer(writer_id: int, count: int) -> None:
                bucket = [f"w{writer_id}".encode()]
                for i in range(count):
                    result = await run(service.set_key, Query(bucket, f"k{i}".encode(), f"v{i}".encode()))
                    assert result.is_ok, result.message

            await asyncio.gather(*[writer(i, 25) for i in range(8)])

            for writer_id in range(8):
                for i in range(25):
                    result = service.get_key(Query([f"w{writer_id}".encode()], f"k{i}".encode()))
                    assert result.value == f"v{i}".encode()

    async def test_many_concurrent_readers(self, db_path):
        """Test that concurrent readers all see committed data."""
        with Store.open(db_path) as store:
            service = Service(store)
            service.create_bucket(Query([], b"data"))
            for i in range(100):
                service.set_key(Query([b"data"], f"key{i:03d}".encode(), f"value{i}".encode()))

            async def reader(count: int) -> bool:
                for _ in range(count):
                    i = random.randint(0, 99)
                    result = await run(service.get_key, Query([b"data"], f"key{i:03d}".encode()))
                    if result.value != f"value{i}".encode():
                        return False
                return True

            results = await asyncio.gather(*[reader(50) for _ in range(10)])

            assert all(results)

    async def test_mixed_workload(self, db_path):
        """Test that a mixed workload only yields expected outcomes."""
        with Store.open(db_path, timeout=10.0) as store:
            service = Service(store)
            service.create_bucket(Query([], b"a"))
            service.create_bucket(Query([b"a"], b"b"))

            outcomes: list = []

            async def worker(worker_id: int) -> None:
                for i in range(30):
                    key = f"key{random.randint(0, 9)}".encode()
                    op = random.choice(["read", "write", "delete"])
                    if op == "read":
                        result = await run(service.get_key, Query([b"a", b"b"], key))
                    elif op == "write":
                        result = await run(service.set_key, Query([b"a", b"b"], key, f"{worker_id}_{i}".encode()))
                    else:
                        result = await run(service.delete, Query([b"a", b"b"], key))
                    outcomes.append(result.error)

            await asyncio.gather(*[worker(i) for i in range(6)])

            assert set(outcomes) <= {None, ErrorKind.KEY_NOT_FOUND}


class TestThreadedService:
    """Service operations called directly from threads."""

    def test_serialized_increments(self, db_path):
        """Test that read-modify-write inside one transaction never loses updates."""
        with Store.open(db_path, timeout=10.0) as store:
            service = Service(store)
            service.create_bucket(Query([], b"counter"))
            service.set_key(Query([b"counter"], b"n", b"0"))

            def increment(tx) -> None:
                bucket = tx.bucket(b"counter")
                bucket.put(b"n", str(int(bucket.get(b"n")) + 1).encode())

            with ThreadPoolExecutor(max_workers=8) as pool:
                for future in [pool.submit(store.update, increment) for _ in range(40)]:
                    future.result()

            assert service.get_key(Query([b"counter"], b"n")).value == b"40"

    def test_readers_during_bucket_delete(self, db_path):
        """Test that readers see either the whole bucket or none of it."""
        with Store.open(db_path, timeout=10.0) as store:
            service = Service(store)
            service.create_bucket(Query([], b"a"))
            service.create_bucket(Query([b"a"], b"b"))
            service.set_key(Query([b"a", b"b"], b"k", b"v"))

            def read(_: int):
                return service.get_key(Query([b"a", b"b"], b"k"))

            with ThreadPoolExecutor(max_workers=4) as pool:
                futures = [pool.submit(read, i) for i in range(20)]
                service.delete_bucket(Query([b"a"], b"b"))
                results = [future.result() for future in futures]

            for result in results:
                assert result.value == b"v" or result.error is ErrorKind.BUCKET_NOT_FOUND
