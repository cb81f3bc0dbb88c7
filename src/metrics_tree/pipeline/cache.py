"""Generation-stamped cache of stage results, keyed by scope.

A generation is replaced, never mutated: publishing a stage result swaps in
a new Generation holding one more entry. Invalidation bumps the generation
number, so results of builds that started before it are dropped on publish.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Pipeline stages in dependency order."""

    DEPENDENCIES = "dependencies"
    CLASS_METHOD_MODEL = "class_method_model"
    PACKAGE_MODEL = "package_model"
    PROJECT_MODEL = "project_model"

    @property
    def previous(self) -> Optional["Stage"]:
        order = list(Stage)
        position = order.index(self)
        return order[position - 1] if position > 0 else None

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class StageState(Enum):
    """State machine of one scope; each state means every earlier stage is built."""

    EMPTY = "empty"
    DEPENDENCIES_BUILT = "dependencies_built"
    CLASS_METHOD_MODEL_BUILT = "class_method_model_built"
    PACKAGE_MODEL_BUILT = "package_model_built"
    PROJECT_MODEL_BUILT = "project_model_built"


_STATE_AFTER = {
    Stage.DEPENDENCIES: StageState.DEPENDENCIES_BUILT,
    Stage.CLASS_METHOD_MODEL: StageState.CLASS_METHOD_MODEL_BUILT,
    Stage.PACKAGE_MODEL: StageState.PACKAGE_MODEL_BUILT,
    Stage.PROJECT_MODEL: StageState.PROJECT_MODEL_BUILT,
}


@dataclass(frozen=True)
class Generation:
    """Stage results of one scope between two invalidations."""

    number: int
    results: Mapping[Stage, Any] = field(default_factory=lambda: MappingProxyType({}))

    def with_result(self, stage: Stage, value: Any) -> "Generation":
        results = dict(self.results)
        results[stage] = value
        return Generation(self.number, MappingProxyType(results))

    @property
    def state(self) -> StageState:
        state = StageState.EMPTY
        for stage in Stage:
            if stage not in self.results:
                break
            state = _STATE_AFTER[stage]
        return state


class MetricsCache:
    """Owned by one analysis session and passed explicitly to the orchestrator.

    Usage:
        cache = MetricsCache()
        number = cache.generation("scope").number
        cache.publish("scope", number, Stage.DEPENDENCIES, result)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generations: dict[str, Generation] = {}

    def generation(self, key: str) -> Generation:
        """Current generation of ``key``, created empty if absent."""
        with self._lock:
            current = self._generations.get(key)
            if current is None:
                current = Generation(0)
                self._generations[key] = current
            return current

    def get(self, key: str, stage: Stage) -> Optional[Any]:
        return self.generation(key).results.get(stage)

    def publish(self, key: str, number: int, stage: Stage, value: Any) -> bool:
        """Store ``value`` when generation ``number`` is still current.

        Returns:
            False when the generation was invalidated meanwhile
        """
        with self._lock:
            current = self._generations.get(key) or Generation(0)
            if current.number != number:
                logger.debug(f"Dropping {stage.label} of {key}: generation {number} is stale")
                return False
            self._generations[key] = current.with_result(stage, value)
            return True

    def invalidate(self, key: str) -> int:
        """Discard every stage result of ``key`` and return the new generation number."""
        with self._lock:
            current = self._generations.get(key) or Generation(0)
            self._generations[key] = Generation(current.number + 1)
            return current.number + 1

    def state(self, key: str) -> StageState:
        return self.generation(key).state

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._generations)

    def clear(self) -> None:
        with self._lock:
            self._generations.clear()
