"""Domain models describing samples, alerts and engine state."""
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from perfwatch.core.clock import now_ms


class MetricCategory(str, Enum):
    """Categories a metric series can be filed under."""

    LOAD = "load"
    RUNTIME = "runtime"
    NETWORK = "network"
    RENDERING = "rendering"
    MEMORY = "memory"
    BUNDLE = "bundle"
    LAZY_LOADING = "lazy-loading"


class AlertType(str, Enum):
    """Budget and threshold violations raised by collectors."""

    LOAD_TIME_EXCEEDED = "load-time-exceeded"
    LOW_FPS = "low-fps"
    HIGH_DOM_MUTATIONS = "high-dom-mutations"
    MEMORY_BUDGET_EXCEEDED = "memory-budget-exceeded"
    HIGH_MEMORY_USAGE = "high-memory-usage"
    BUNDLE_SIZE_EXCEEDED = "bundle-size-exceeded"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BudgetState(str, Enum):
    WITHIN = "within"
    EXCEEDED = "exceeded"
    UNKNOWN = "unknown"


class CollectorStateReason(str, Enum):
    """Why a collector is not producing samples."""

    CAPABILITY_UNAVAILABLE = "capability-unavailable"
    DISABLED = "disabled"
    COLLECTOR_FAILURE = "collector-failure"


class MetricSample(BaseModel):
    """One timestamped observation; extra fields are category specific."""

    model_config = ConfigDict(frozen=True, extra="allow")

    value: Optional[float] = None
    timestamp: float = Field(default_factory=now_ms)

    def field(self, name: str, default: Any = None) -> Any:
        if name in type(self).model_fields:
            return getattr(self, name)
        return (self.model_extra or {}).get(name, default)


class Alert(BaseModel):
    """Recorded threshold or budget violation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=now_ms)


class Recommendation(BaseModel):
    """Derived, prioritized suggestion for corrective action."""

    type: str
    priority: Priority
    message: str
    action: str


class BudgetStatus(BaseModel):
    status: BudgetState
    value: Optional[float] = None
    budget: float
    percentage: Optional[float] = None


class CollectorState(BaseModel):
    """Activation state of a single collector."""

    name: str
    active: bool = False
    reason: Optional[CollectorStateReason] = None
    error: Optional[str] = None


class OptimizationResult(BaseModel):
    action: str
    applied: bool = False
    error: Optional[str] = None


class PerformanceSummary(BaseModel):
    """Aggregate view over the metric store, alert log and budget."""

    total_metrics: int = 0
    total_alerts: int = 0
    categories: Dict[str, int] = Field(default_factory=dict)
    budget_status: Dict[str, BudgetStatus] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list)


class TimingEntry(BaseModel):
    """Completed timing event delivered on the timing channel."""

    model_config = ConfigDict(frozen=True)

    name: str
    entry_type: str = "resource"
    start_time: float = 0.0
    duration: float = 0.0


class NavigationTiming(BaseModel):
    """Milestones of the host application's startup, in milliseconds."""

    model_config = ConfigDict(frozen=True)

    navigation_start: float
    response_start: float
    dom_content_loaded_end: float
    load_event_end: float


class Mutation(BaseModel):
    """Single tree mutation delivered inside a batch."""

    model_config = ConfigDict(frozen=True)

    kind: str = "child-list"
    target: Optional[str] = None


class MemoryReading(BaseModel):
    model_config = ConfigDict(frozen=True)

    used_bytes: float
    total_bytes: float
    limit_bytes: float


class VisibilityEntry(BaseModel):
    """Visibility transition reported by a visibility observer."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    target: Any
    is_visible: bool
