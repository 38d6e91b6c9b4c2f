"""Engine and application configuration management."""
import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOAD_TIME_MS = 3000.0
DEFAULT_MEMORY_USAGE_MB = 50.0
DEFAULT_BUNDLE_SIZE_KB = 500.0
DEFAULT_RENDER_TIME_MS = 16.0


class PerformanceBudget(BaseModel):
    """Thresholds a monitored application is expected to stay under."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    load_time: float = Field(DEFAULT_LOAD_TIME_MS, alias="loadTime", description="Load budget in milliseconds")
    memory_usage: float = Field(DEFAULT_MEMORY_USAGE_MB, alias="memoryUsage", description="Heap budget in MB")
    bundle_size: float = Field(DEFAULT_BUNDLE_SIZE_KB, alias="bundleSize", description="Bundle budget in KB")
    render_time: float = Field(DEFAULT_RENDER_TIME_MS, alias="renderTime", description="Frame budget in milliseconds")


class MonitoringPolicy(BaseModel):
    """Tunable thresholds and capacities used by collectors and rules."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    series_capacity: int = Field(100, ge=1, description="Samples kept per metric series")
    alert_capacity: int = Field(50, ge=1, description="Alerts kept in the alert log")
    memory_trim_size: int = Field(50, ge=0, description="Series length kept by memory optimization")
    fps_threshold: float = Field(30, description="Frame rate below which low-fps fires")
    fps_window_ms: float = Field(1000, gt=0, description="Frame counting window")
    long_task_threshold_ms: float = Field(50, description="Callback duration considered a long task")
    dom_mutation_threshold: int = Field(100, description="Mutations per batch before alerting")
    memory_interval_s: float = Field(5.0, gt=0, description="Seconds between memory samples")
    memory_percentage_threshold: float = Field(80, description="Heap percentage before alerting")
    long_task_recommendation_count: int = Field(
        5,
        description="Long-task samples tolerated before recommending JavaScript optimization",
    )


class OptimizerOptions(BaseModel):
    """Construction options for the performance optimizer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enable_auto_optimization: bool = Field(True, alias="enableAutoOptimization")
    enable_memory_monitoring: bool = Field(True, alias="enableMemoryMonitoring")
    enable_bundle_analysis: bool = Field(True, alias="enableBundleAnalysis")
    enable_lazy_loading: bool = Field(True, alias="enableLazyLoading")
    enable_adaptive_frame_rate: bool = Field(False, alias="enableAdaptiveFrameRate")
    enable_task_scheduling: bool = Field(False, alias="enableTaskScheduling")
    enable_dom_batching: bool = Field(False, alias="enableDOMBatching")
    performance_budget: PerformanceBudget = Field(default_factory=PerformanceBudget, alias="performanceBudget")
    policy: MonitoringPolicy = Field(default_factory=MonitoringPolicy)
    bundle_module_prefixes: list[str] = Field(
        default_factory=lambda: ["perfwatch"],
        alias="bundleModulePrefixes",
        description="Module name prefixes counted by bundle analysis",
    )


class Settings(BaseSettings):
    """Resolved application settings for the HTTP surface."""

    model_config = SettingsConfigDict(env_prefix="PERFWATCH_", extra="ignore")

    host: str = Field("0.0.0.0", description="Application bind address")
    port: int = Field(5000, description="Application bind port")
    log_level: str = Field("INFO", description="Root logging level")
    options_path: Optional[Path] = Field(
        default=None,
        description="Optional JSON file holding optimizer options",
    )
    memory_budget_mb: float = Field(
        512.0,
        gt=0,
        description="Process RSS budget in MB applied when the options leave memoryUsage unset",
    )


def load_options(path: Path | None) -> OptimizerOptions:
    """Load optimizer options from a JSON file, falling back to defaults."""

    if path is None or not path.exists():
        return OptimizerOptions()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return OptimizerOptions.model_validate(data)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid optimizer options in {path}: {e}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
