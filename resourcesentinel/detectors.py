from __future__ import annotations
import logging
from typing import List, Optional

from .baselines import BaselineStore
from .models import AlertDecision

logger = logging.getLogger(__name__)

# current > mean + SIGMA_MULTIPLIER * std  ->  anomalous
SIGMA_MULTIPLIER = 1.5

LEVEL_NORMAL  = "NORMAL"
LEVEL_WARNING = "WARNING"

GENERIC_SUGGESTIONS = (
    "Suggestions: 1. check service load 2. check the state of dependent "
    "services 3. contact the operations team"
)


class DynamicThresholdDetector:
    def __init__(self, baselines: BaselineStore):
        self.baselines = baselines

    # ══════════════════════════════════════════
    # PUBLIC entry-point  (called per ingested sample)
    # ══════════════════════════════════════════

    def check_alert(
        self,
        entity: str,
        cpu: Optional[float],
        mem: Optional[float],
        response_time_ms: Optional[int] = None,
    ) -> AlertDecision:
        b = self.baselines.get_or_create(entity)

        cpu_alert  = self._is_anomalous("CPU", cpu, b.avg_cpu, b.std_cpu)
        mem_alert  = self._is_anomalous("memory", mem, b.avg_mem, b.std_mem)
        resp_value = float(response_time_ms) if response_time_ms is not None else None
        resp_alert = self._is_anomalous("response time", resp_value,
                                        b.avg_response, b.std_response)

        if not (cpu_alert or mem_alert or resp_alert):
            return AlertDecision(
                need_alert=False, level=LEVEL_NORMAL,
                message="service running normally",
            )

        message = _alert_message(entity, cpu_alert, mem_alert, resp_alert)
        logger.warning("Dynamic threshold alert: %s", message)
        return AlertDecision(
            need_alert=True, level=LEVEL_WARNING,
            message=message, suggestions=GENERIC_SUGGESTIONS,
        )

    # ══════════════════════════════════════════
    # PRIVATE
    # ══════════════════════════════════════════

    def _is_anomalous(
        self,
        name: str,
        current: Optional[float],
        avg: Optional[float],
        std: Optional[float],
    ) -> bool:
        if current is None or avg is None or std is None:
            return False
        threshold = threshold_for(avg, std)
        if current > threshold:
            logger.warning(
                "%s anomaly: current %.2f > threshold %.2f (avg=%.2f, std=%.2f)",
                name, current, threshold, avg, std,
            )
            return True
        return False


def threshold_for(avg: float, std: float) -> float:
    return avg + SIGMA_MULTIPLIER * std


def _alert_message(entity: str, cpu: bool, mem: bool, resp: bool) -> str:
    clauses: List[str] = []
    if cpu:
        clauses.append("CPU usage out of normal range")
    if mem:
        clauses.append("memory usage out of normal range")
    if resp:
        clauses.append("response time out of normal range")
    return f"Service [{entity}] anomaly detected: " + "; ".join(clauses)
