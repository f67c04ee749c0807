"""
Tests for performance monitoring.
"""
import asyncio

import pytest
import time
from app.core.performance import MAX_SAMPLES_PER_METRIC, PerformanceMonitor, track_performance


def test_performance_monitor_record():
    """Test recording performance metrics."""
    PerformanceMonitor.clear_metrics()

    PerformanceMonitor.record_metric("test_metric", 1.5, {"test": "data"})
    PerformanceMonitor.record_metric("test_metric", 2.0)
    PerformanceMonitor.record_metric("test_metric", 0.5)

    stats = PerformanceMonitor.get_stats("test_metric")

    assert stats is not None
    assert stats["count"] == 3
    assert stats["min"] == 0.5
    assert stats["max"] == 2.0
    assert stats["mean"] == pytest.approx(1.333, rel=0.01)
    assert stats["p50"] == 1.5
    assert stats["p99"] == 2.0


def test_performance_monitor_keeps_recent_samples():
    PerformanceMonitor.clear_metrics()

    for i in range(MAX_SAMPLES_PER_METRIC + 50):
        PerformanceMonitor.record_metric("rolling", float(i))

    stats = PerformanceMonitor.get_stats("rolling")
    assert stats["count"] == MAX_SAMPLES_PER_METRIC
    assert stats["min"] == 50.0


def test_performance_decorator_sync():
    """Test performance tracking decorator on sync function."""
    PerformanceMonitor.clear_metrics()

    @track_performance("test_function")
    def test_func(x: int) -> int:
        time.sleep(0.01)  # Small delay to measure
        return x * 2

    result = test_func(5)

    assert result == 10

    stats = PerformanceMonitor.get_stats("test_function")
    assert stats is not None
    assert stats["count"] == 1
    assert stats["mean"] > 0


def test_performance_decorator_records_failures():
    PerformanceMonitor.clear_metrics()

    @track_performance("failing_function")
    def failing():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        failing()

    assert PerformanceMonitor.get_stats("failing_function")["count"] == 1


@pytest.mark.asyncio
async def test_performance_decorator_async():
    """Test performance tracking decorator on async function."""
    PerformanceMonitor.clear_metrics()

    @track_performance("test_async_function")
    async def test_async_func(x: int) -> int:
        await asyncio.sleep(0.01)
        return x * 2

    result = await test_async_func(5)

    assert result == 10

    stats = PerformanceMonitor.get_stats("test_async_function")
    assert stats is not None
    assert stats["count"] == 1
    assert stats["mean"] > 0


def test_analysis_is_tracked():
    from app.services.recommender import analyze_data_patterns

    PerformanceMonitor.clear_metrics()
    analyze_data_patterns([{"Date": "2024-01-01", "Revenue": 1}])

    assert "analyze_data_patterns" in PerformanceMonitor.get_all_metrics()


def test_performance_monitor_clear():
    """Test clearing metrics."""
    PerformanceMonitor.record_metric("test", 1.0)
    assert PerformanceMonitor.get_stats("test") is not None

    PerformanceMonitor.clear_metrics()
    assert PerformanceMonitor.get_stats("test") is None
