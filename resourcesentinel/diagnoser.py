from __future__ import annotations
import logging
import time
from statistics import fmean, pstdev
from typing import List, Optional, Sequence

from .models import Sample, Diagnosis, TrendAnalysis

logger = logging.getLogger(__name__)

MIN_CONFIDENCE   = 40       # only diagnoses strictly above this are reported
MIN_MEMORY_TREND = 3        # history points needed for the leak check

MEMORY_LEAK = "Memory leak risk"
CPU_ISSUE   = "CPU performance issue"
DISK_RISK   = "Disk space risk"


class TrendDiagnoser:
    """
    Heuristic diagnoses over a short rolling history.

    Missing fields: a sample whose field is None is left out of the
    average / volatility for that signal, the leak growth uses the first
    and last samples that carry a memory value, an empty series averages
    to 0, and a None field on ``current`` never satisfies a "current > x"
    tier.
    """

    def analyze(self, current: Sample, history: Sequence[Sample]) -> TrendAnalysis:
        history = list(history)
        logger.info("Starting trend analysis over %d history points", len(history))

        diagnoses: List[Diagnosis] = []
        for d in (
            self.detect_memory_leak(current, history),
            self.detect_cpu_issue(current, history),
            self.detect_disk_issue(current, history),
        ):
            if d.confidence > MIN_CONFIDENCE:
                diagnoses.append(d)

        logger.info("Trend analysis finished, %d potential issue(s)", len(diagnoses))
        return TrendAnalysis(diagnoses=diagnoses, analysis_time=int(time.time()))

    # ── memory ────────────────────────────────
    def detect_memory_leak(self, current: Sample, history: Sequence[Sample]) -> Diagnosis:
        if len(history) < MIN_MEMORY_TREND:
            return Diagnosis(MEMORY_LEAK, 0, "insufficient history")

        mem = _values(history, "mem_pct")
        growth = memory_growth(mem)
        avg = _mean(mem)

        if growth > 1.5 and avg > 80:
            return Diagnosis(MEMORY_LEAK, 85,
                             f"Memory growing fast ({growth:.1f}%), average usage {avg:.1f}%")
        if growth > 0.8 and avg > 70:
            return Diagnosis(MEMORY_LEAK, 65,
                             f"Memory growing steadily ({growth:.1f}%), usage on the high side")
        if _above(current.mem_pct, 90):
            return Diagnosis(MEMORY_LEAK, 75, "Memory usage above 90%")
        return Diagnosis(MEMORY_LEAK, 0, "memory usage normal")

    # ── cpu ───────────────────────────────────
    def detect_cpu_issue(self, current: Sample, history: Sequence[Sample]) -> Diagnosis:
        cpu = _values(history, "cpu_pct")
        avg = _mean(cpu)
        volatility = pstdev(cpu) if cpu else 0.0

        if _above(current.cpu_pct, 95):
            return Diagnosis(CPU_ISSUE, 90, "CPU usage above 95%")
        if avg > 85 and volatility < 10:
            return Diagnosis(CPU_ISSUE, 75,
                             f"CPU under sustained high load (average {avg:.1f}%), low volatility")
        if avg > 80:
            return Diagnosis(CPU_ISSUE, 60, f"CPU load on the high side (average {avg:.1f}%)")
        return Diagnosis(CPU_ISSUE, 0, "CPU usage normal")

    # ── disk ──────────────────────────────────
    def detect_disk_issue(self, current: Sample, history: Sequence[Sample]) -> Diagnosis:
        avg = _mean(_values(history, "disk_used_gb"))

        if _above(current.disk_used_gb, 95):
            return Diagnosis(DISK_RISK, 95, "Disk usage above 95")
        if avg > 90:
            return Diagnosis(DISK_RISK, 80, f"Disk usage persistently high (average {avg:.1f})")
        if _above(current.disk_used_gb, 85):
            return Diagnosis(DISK_RISK, 65, "Disk usage on the high side")
        return Diagnosis(DISK_RISK, 0, "Disk usage normal")


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────
def memory_growth(mem: Sequence[float]) -> float:
    """Percentage-point change from first to last value (not per unit time)."""
    if len(mem) < 2:
        return 0.0
    return mem[-1] - mem[0]


def _values(history: Sequence[Sample], attr: str) -> List[float]:
    out: List[float] = []
    for s in history:
        v = getattr(s, attr)
        if v is not None:
            out.append(float(v))
    return out


def _mean(values: Sequence[float]) -> float:
    return fmean(values) if values else 0.0


def _above(value: Optional[float], limit: float) -> bool:
    return value is not None and value > limit
