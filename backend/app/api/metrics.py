"""
Metrics endpoint for performance monitoring.
"""
from fastapi import APIRouter
from app.core.performance import PerformanceMonitor
from app.core.cache import get_analysis_cache

router = APIRouter()


@router.get("/metrics")
async def get_metrics():
    """Timing statistics for tracked operations plus analysis cache stats."""
    return {
        'performance': PerformanceMonitor.get_all_metrics(),
        'cache': {
            'analysis_cache': get_analysis_cache().get_stats()
        }
    }
