"""Estimate the size of the application's loaded modules."""
from __future__ import annotations

import logging
import os
import sys
from typing import Iterable

from perfwatch.models import AlertType, MetricCategory
from perfwatch.services.collectors.base import Collector

logger = logging.getLogger(__name__)


def _matches(module_name: str, prefixes: Iterable[str]) -> bool:
    return any(module_name == prefix or module_name.startswith(f"{prefix}.") for prefix in prefixes)


class BundleCollector(Collector):
    """One-shot analysis summing source file sizes of matching modules, in KB."""

    name = "bundle"

    def _start(self) -> None:
        self.analyze()

    def analyze(self) -> float:
        prefixes = self._context.options.bundle_module_prefixes
        total_bytes = 0
        modules = 0
        for module_name, module in list(sys.modules.items()):
            if module is None or not _matches(module_name, prefixes):
                continue
            path = getattr(module, "__file__", None)
            if not path:
                continue
            try:
                total_bytes += os.path.getsize(path)
            except OSError:
                logger.debug("Skipping unreadable module file %s", path)
                continue
            modules += 1

        size = total_bytes / 1024
        self._record(MetricCategory.BUNDLE, "estimated-size", {"size": size, "modules": modules})

        budget = self._context.budget.bundle_size
        if size > budget:
            self._alert(AlertType.BUNDLE_SIZE_EXCEEDED, {"actual": size, "budget": budget})
        return size
