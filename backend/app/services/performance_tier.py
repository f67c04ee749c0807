"""
Performance tier selection.

Maps dataset size to a rendering tier, and each tier to the rendering
flags the chart components toggle (large mode, WebGL, progressive
rendering, animation). Pure functions; no I/O.
"""
from typing import List, Optional

from app.core.schemas import PerformanceAdvice, PerformanceTier, RenderingStrategy

# Row-count thresholds. "small" is where the validation helper switches
# on performance mode; the other three pick the tier.
TIER_THRESHOLDS = {
    "small": 1000,
    "medium": 5000,
    "large": 15000,
    "massive": 50000,
}

# Highest threshold first
_TIERS = [
    ("massive", "ultra", "progressive"),
    ("large", "extreme", "webgl"),
    ("medium", "optimized", "large"),
]

PIE_GROUPING_ROWS = 50


def select_tier(row_count: int) -> PerformanceTier:
    """
    Select the rendering tier for a dataset size.

    Thresholds are inclusive: 5000 rows is already 'optimized'.
    """
    for threshold_key, tier, strategy in _TIERS:
        if row_count >= TIER_THRESHOLDS[threshold_key]:
            return PerformanceTier(tier=tier, rendering_strategy=strategy)
    return PerformanceTier(tier="normal", rendering_strategy="standard")


def _ultra_strategy(chart_type: Optional[str]) -> RenderingStrategy:
    return RenderingStrategy(
        name="progressive",
        echarts={
            "large": True,
            "largeThreshold": 1000,
            "progressive": 500,
            "progressiveThreshold": 10000,
            "useDirtyRect": True,
            "useCoarsePointer": True,
            "animation": False,
            "sampling": "lttb" if chart_type == "line" else None,
        },
        plotly={
            "useWebGL": True,
            "scattergl": True,
            "webglpointthreshold": 1000,
            "plotGlPixelRatio": 1,
        },
        browser={
            "requestIdleCallback": True,
            "virtualScrolling": True,
            "memoryManagement": True,
            "progressiveRendering": True,
        },
    )


def _extreme_strategy(chart_type: Optional[str]) -> RenderingStrategy:
    return RenderingStrategy(
        name="webgl",
        echarts={
            "large": True,
            "largeThreshold": 2000,
            "progressive": 0,
            "useDirtyRect": True,
            "useCoarsePointer": True,
            "animation": False,
        },
        plotly={
            "useWebGL": True,
            "scattergl": True,
            "webglpointthreshold": 2000,
            "plotGlPixelRatio": 1,
        },
        browser={
            "requestIdleCallback": True,
            "memoryManagement": True,
        },
    )


def _optimized_strategy(chart_type: Optional[str]) -> RenderingStrategy:
    return RenderingStrategy(
        name="large",
        echarts={
            "large": True,
            "largeThreshold": 3000,
            "useDirtyRect": True,
            "animation": chart_type != "scatter",
        },
        plotly={
            "useWebGL": chart_type in ("scatter", "bubble"),
            "webglpointthreshold": 3000,
        },
    )


def _standard_strategy(chart_type: Optional[str]) -> RenderingStrategy:
    return RenderingStrategy(name="standard", echarts={"animation": True})


_STRATEGY_BUILDERS = {
    "ultra": _ultra_strategy,
    "extreme": _extreme_strategy,
    "optimized": _optimized_strategy,
    "normal": _standard_strategy,
}


def get_rendering_strategy(row_count: int, chart_type: Optional[str] = None) -> RenderingStrategy:
    """Rendering flags for a dataset size, specialised by chart type."""
    tier = select_tier(row_count).tier
    return _STRATEGY_BUILDERS[tier](chart_type)


def get_performance_recommendations(row_count: int, chart_type: Optional[str] = None) -> List[PerformanceAdvice]:
    """User-facing notes describing what the selected tier switches on."""
    tier = select_tier(row_count).tier
    advice = []

    if tier == "ultra":
        advice.append(PerformanceAdvice(
            type="critical",
            message=f"Ultra-large dataset ({row_count:,} rows). Progressive rendering enabled.",
            actions=["Progressive rendering", "WebGL acceleration", "Memory optimization"]
        ))
    elif tier == "extreme":
        advice.append(PerformanceAdvice(
            type="warning",
            message=f"Large dataset ({row_count:,} rows). WebGL acceleration enabled.",
            actions=["WebGL rendering", "Large mode", "Animation disabled"]
        ))
    elif tier == "optimized":
        advice.append(PerformanceAdvice(
            type="info",
            message=f"Medium dataset ({row_count:,} rows). Large mode enabled.",
            actions=["Large mode", "Optimized rendering"]
        ))

    if chart_type == "pie" and row_count > PIE_GROUPING_ROWS:
        advice.append(PerformanceAdvice(
            type="info",
            message="Large pie chart optimized by grouping smaller slices.",
            actions=["Smart grouping", "No data truncation"]
        ))

    return advice
