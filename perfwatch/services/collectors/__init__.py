"""Signal collectors feeding the metric store."""
from .base import Collector, CollectorContext
from .bundle import BundleCollector
from .dom_mutation import DomMutationCollector
from .frame_rate import FrameRateCollector
from .load import LoadCollector
from .long_task import IntervalHandle, LongTaskCollector
from .memory import MemoryCollector
from .network import NetworkCollector
from .rendering import RenderingCollector

__all__ = [
    "BundleCollector",
    "Collector",
    "CollectorContext",
    "DomMutationCollector",
    "FrameRateCollector",
    "IntervalHandle",
    "LoadCollector",
    "LongTaskCollector",
    "MemoryCollector",
    "NetworkCollector",
    "RenderingCollector",
]
