from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Any, Dict, Literal

ColumnType = Literal["categorical", "numerical", "temporal", "mixed"]
Priority = Literal["high", "medium", "low"]
TierName = Literal["normal", "optimized", "extreme", "ultra"]


class ColumnProfile(BaseModel):
    name: str
    type: ColumnType
    unique_values: int
    unique_ratio: float
    confidence: float
    characteristics: List[str] = []
    # Only populated for numerical columns
    range: Optional[float] = None
    mean: Optional[float] = None
    variance: Optional[float] = None


class PatternGroups(BaseModel):
    categorical: List[ColumnProfile] = []
    numerical: List[ColumnProfile] = []
    temporal: List[ColumnProfile] = []
    mixed: List[ColumnProfile] = []

    def add(self, profile: ColumnProfile) -> None:
        getattr(self, profile.type).append(profile)


class Recommendation(BaseModel):
    chart_type: str  # 'line', 'bar', 'pie', 'scatter', 'bubble'
    title: str
    description: str
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    group_by: Optional[str] = None
    size_by: Optional[str] = None
    label_field: Optional[str] = None  # pie charts bind label/value instead of axes
    value_field: Optional[str] = None
    confidence: float
    priority: Priority
    reasoning: str
    suitability: str = "good"
    performance_note: Optional[str] = None


class PatternAnalysis(BaseModel):
    patterns: PatternGroups = Field(default_factory=PatternGroups)
    recommendations: List[Recommendation] = []
    confidence: int = 0  # percent, over all generated recommendations


class PerformanceTier(BaseModel):
    tier: TierName
    rendering_strategy: str


class RenderingStrategy(BaseModel):
    name: str
    echarts: Dict[str, Any] = {}
    plotly: Dict[str, Any] = {}
    browser: Dict[str, Any] = {}


class PerformanceAdvice(BaseModel):
    type: str  # 'critical', 'warning', 'info'
    message: str
    actions: List[str] = []


class ValidationIssue(BaseModel):
    type: str
    message: str
    suggestion: str


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
    data_size: int = 0
    performance_mode: bool = False


# Request / response bodies for the HTTP layer

class ChartConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    x_axis: Optional[str] = Field(default=None, alias="xAxis")
    y_axis: Optional[str] = Field(default=None, alias="yAxis")


class AnalyzeRequest(BaseModel):
    data: List[Dict[str, Any]]
    headers: Optional[List[str]] = None
    limit: Optional[int] = Field(default=None, ge=1, le=50)


class AnalyzeResponse(PatternAnalysis):
    row_count: int
    performance: PerformanceTier


class ValidateRequest(BaseModel):
    data: List[Dict[str, Any]]
    config: ChartConfig = Field(default_factory=ChartConfig)


class ShapeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data: List[Dict[str, Any]]
    chart_type: str
    x_axis: Optional[str] = Field(default=None, alias="xAxis")
    y_axis: Optional[str] = Field(default=None, alias="yAxis")
    series: Optional[List[str]] = None
    max_points: Optional[int] = Field(default=None, ge=1)


class PerformanceReport(BaseModel):
    row_count: int
    performance: PerformanceTier
    strategy: RenderingStrategy
    advice: List[PerformanceAdvice] = []


# Preprocessing and column statistics

MissingValueStrategy = Literal["auto", "mean", "median", "mode", "interpolate"]
DuplicateStrategy = Literal["strict", "key_columns", "fuzzy"]
OutlierStrategy = Literal["iqr", "cap", "std", "remove"]


class PreprocessingOptions(BaseModel):
    missing_value_strategy: MissingValueStrategy = "auto"
    duplicate_strategy: DuplicateStrategy = "strict"
    handle_outliers: bool = False
    outlier_strategy: OutlierStrategy = "iqr"


class PreprocessingStats(BaseModel):
    rows_processed: int = 0
    missing_values_handled: int = 0
    duplicates_removed: int = 0
    data_types_normalized: int = 0
    outliers_treated: int = 0


class ConsistencyReport(BaseModel):
    is_consistent: bool = True
    issues: List[str] = []
    warnings: List[str] = []


class DataQuality(BaseModel):
    score: float = 0.0  # percent
    completeness: float = 0.0
    consistency: float = 0.0
    total_cells: int = 0
    null_cells: int = 0
    processed_rows: int = 0


class PreprocessingResult(BaseModel):
    data: List[Dict[str, Any]] = []
    original_count: int = 0
    processed_count: int = 0
    stats: PreprocessingStats = Field(default_factory=PreprocessingStats)
    validation: ConsistencyReport = Field(default_factory=ConsistencyReport)
    quality: DataQuality = Field(default_factory=DataQuality)


class OutlierSummary(BaseModel):
    count: int
    percentage: float
    values: List[float] = []


class ColumnStatistics(BaseModel):
    """Descriptive statistics; a value that overflows float range is None."""
    count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    std_dev: Optional[float] = None  # sample; None below two values
    variance: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    q1: Optional[float] = None
    q3: Optional[float] = None
    range: Optional[float] = None
    skewness: Optional[float] = None
    kurtosis: Optional[float] = None  # excess
    percentiles: Dict[str, Optional[float]] = {}
    outliers: OutlierSummary


class Correlation(BaseModel):
    columns: List[str]
    correlation: float
    strength: str  # 'Strong', 'Moderate', 'Weak', 'Very Weak'
    sample_size: int


class EnhancedAnalyzeRequest(BaseModel):
    data: List[Dict[str, Any]]
    headers: Optional[List[str]] = None
    limit: Optional[int] = Field(default=None, ge=1, le=50)
    preprocessing: PreprocessingOptions = Field(default_factory=PreprocessingOptions)
    preferred_chart_types: List[str] = []
    avoid_chart_types: List[str] = []


class PreprocessingSummary(BaseModel):
    original_count: int
    processed_count: int
    stats: PreprocessingStats
    validation: ConsistencyReport
    quality: DataQuality


class EnhancedAnalyzeResponse(BaseModel):
    analysis: AnalyzeResponse
    preprocessing: PreprocessingSummary
    statistics: Dict[str, Optional[ColumnStatistics]] = {}
    correlations: List[Correlation] = []
