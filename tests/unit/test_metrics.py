"""
Unit tests for MetricsCollector and timed_operation.

Tests metrics collection functionality including:
- Thread-safety under concurrent access
- Bounded storage with LRU eviction
- Success accounting for timed async operations
"""

import threading

import pytest

from authz_bridge.observability.metrics import (
    MetricsCollector,
    get_metrics_collector,
    record_operation,
    timed_operation,
)


class TestMetricsCollectorThreadSafety:
    """Test thread-safety of metrics collection."""

    def test_concurrent_record_operation(self):
        """Test that concurrent record_operation calls are thread-safe."""
        collector = MetricsCollector()
        num_threads = 10
        operations_per_thread = 100
        barrier = threading.Barrier(num_threads)

        def record_operations(thread_id: int):
            barrier.wait()
            for i in range(operations_per_thread):
                collector.record_operation(
                    "authz.check", duration_ms=1.0 + i, success=True, backend=f"b{thread_id}"
                )

        threads = [threading.Thread(target=record_operations, args=(i,)) for i in range(num_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert collector.get_operation_count("authz.check") == num_threads * operations_per_thread


class TestMetricsCollectorBoundedStorage:
    """Test bounded storage with LRU eviction."""

    def test_lru_eviction_order(self):
        """Test that the least recently used entry is evicted first."""
        collector = MetricsCollector(max_metrics=2)
        collector.record_operation("a", 1.0)
        collector.record_operation("b", 1.0)
        collector.record_operation("a", 1.0)
        collector.record_operation("c", 1.0)

        keys = set(collector.get_metrics()["metrics"])
        assert keys == {"a", "c"}


class TestMetricsCollectorFunctionality:
    """Test basic metrics functionality."""

    def test_record_operation_with_tags(self):
        collector = MetricsCollector()
        collector.record_operation("authz.check", 10.0, success=True, backend="casbin")
        collector.record_operation("authz.check", 30.0, success=False, backend="casbin")

        metric = collector.get_metrics()["metrics"]["authz.check[backend=casbin]"]
        assert metric["count"] == 2
        assert metric["avg_duration_ms"] == 20.0
        assert metric["min_duration_ms"] == 10.0
        assert metric["max_duration_ms"] == 30.0
        assert metric["error_count"] == 1
        assert metric["error_rate_percent"] == 50.0

    def test_get_metrics_filtered(self):
        collector = MetricsCollector()
        collector.record_operation("authz.check", 1.0)
        collector.record_operation("authz.update_role", 1.0)

        assert list(collector.get_metrics("authz.update")["metrics"]) == ["authz.update_role"]

    def test_reset(self):
        collector = MetricsCollector()
        collector.record_operation("authz.check", 1.0)
        collector.reset()
        assert collector.get_metrics()["total_operations"] == 0


class TestGlobalMetricsFunctions:
    """Test global metrics functions."""

    def test_get_metrics_collector_singleton(self):
        assert get_metrics_collector() is get_metrics_collector()

    def test_record_operation_global(self):
        record_operation("authz.check", 5.0, backend="opa")
        assert get_metrics_collector().get_operation_count("authz.check") == 1


class TestTimedOperation:
    """Test the timed_operation decorator."""

    @pytest.mark.asyncio
    async def test_true_result_is_success(self):
        @timed_operation("test.op")
        async def op():
            return True

        assert await op() is True
        metric = get_metrics_collector().get_metrics("test.op")["metrics"]["test.op"]
        assert metric["error_count"] == 0

    @pytest.mark.asyncio
    async def test_false_result_is_failure(self):
        @timed_operation("test.op")
        async def op():
            return False

        assert await op() is False
        metric = get_metrics_collector().get_metrics("test.op")["metrics"]["test.op"]
        assert metric["error_count"] == 1

    @pytest.mark.asyncio
    async def test_exception_is_failure_and_propagates(self):
        @timed_operation("test.op", backend="spicedb")
        async def op():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await op()
        metric = get_metrics_collector().get_metrics("test.op")["metrics"]["test.op[backend=spicedb]"]
        assert metric["count"] == 1
        assert metric["error_count"] == 1

    def test_preserves_metadata(self):
        @timed_operation("test.op")
        async def update_role():
            """Docstring."""

        assert update_role.__name__ == "update_role"
        assert update_role.__doc__ == "Docstring."
