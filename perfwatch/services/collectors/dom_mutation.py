"""Batched tree-mutation collector."""
from __future__ import annotations

from typing import Sequence

from perfwatch.models import AlertType, MetricCategory, Mutation
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors.base import Collector


class DomMutationCollector(Collector):
    name = "dom-mutation"

    def is_supported(self, capabilities: CapabilityProvider) -> bool:
        return capabilities.has_mutation_observer

    def _start(self) -> None:
        self._track(self._context.capabilities.mutations.subscribe(self._guard(self._on_batch)))

    def _on_batch(self, mutations: Sequence[Mutation]) -> None:
        count = len(mutations)
        threshold = self._context.policy.dom_mutation_threshold
        if count <= threshold:
            return
        self._record(MetricCategory.RUNTIME, "dom-mutations", {"count": count})
        self._alert(AlertType.HIGH_DOM_MUTATIONS, {"count": count, "threshold": threshold})
