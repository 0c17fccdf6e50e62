from __future__ import annotations
import threading
from typing import Dict, List, Optional

from .models import Baseline


# Seed profile for entities seen for the first time
DEFAULT_AVG_CPU      = 50.0
DEFAULT_STD_CPU      = 20.0
DEFAULT_AVG_MEM      = 60.0
DEFAULT_STD_MEM      = 15.0
DEFAULT_AVG_RESPONSE = 100.0
DEFAULT_STD_RESPONSE = 25.0


def default_baseline(entity: str) -> Baseline:
    return Baseline(
        entity=entity,
        avg_cpu=DEFAULT_AVG_CPU, std_cpu=DEFAULT_STD_CPU,
        avg_mem=DEFAULT_AVG_MEM, std_mem=DEFAULT_STD_MEM,
        avg_response=DEFAULT_AVG_RESPONSE, std_response=DEFAULT_STD_RESPONSE,
    )


class BaselineStore:
    """
    Process-wide entity -> Baseline map.

    Entries are only ever inserted (seeded once, never updated), so a
    lookup that finds a key needs no lock. Inserting a new key is guarded
    so concurrent first observations of the same entity share one object.
    """

    def __init__(self, seeds: Optional[List[Baseline]] = None):
        self._lock = threading.Lock()
        self._baselines: Dict[str, Baseline] = {}
        for b in seeds or []:
            self._baselines[b.entity] = b

    def get(self, entity: str) -> Optional[Baseline]:
        return self._baselines.get(entity)

    def get_or_create(self, entity: str) -> Baseline:
        b = self._baselines.get(entity)
        if b is not None:
            return b
        with self._lock:
            b = self._baselines.get(entity)
            if b is None:
                b = default_baseline(entity)
                self._baselines[entity] = b
            return b

    def entities(self) -> List[str]:
        return sorted(self._baselines)

    def __contains__(self, entity: str) -> bool:
        return entity in self._baselines

    def __len__(self) -> int:
        return len(self._baselines)

