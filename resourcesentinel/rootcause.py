from __future__ import annotations
import logging
import time
from typing import Dict, List, Optional

from .models import Sample, RootCauseResult, is_disk_key, disk_label
from .topology import (
    DependencyTopology, CORE_COMPONENTS, CPU, MEMORY, NETWORK, PROCESSES,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Component-level baselines and scoring constants
# ──────────────────────────────────────────────
COMPONENT_BASELINES: Dict[str, float] = {
    CPU:       70.0,
    MEMORY:    75.0,
    NETWORK:   50.0,
    PROCESSES: 200.0,
}
DISK_BASELINE      = 80.0
FALLBACK_BASELINE  = 70.0       # affected component we have no baseline for

PERCENT_SCALE      = 100.0      # cpu / mem deviation normaliser
PROCESS_SCALE      = 300.0
DISK_ABNORMAL_GB   = 100.0      # used space above this is reported as evidence

CORRELATION_GAIN   = 2.0
CONFIDENCE_GAIN    = 1.2
MAX_CONFIDENCE     = 0.95
FAILURE_CONFIDENCE = 0.6

_SUGGESTIONS: Dict[str, str] = {
    CPU:       "Close unnecessary applications to reduce CPU load",
    MEMORY:    "Free memory and close unused programs",
    NETWORK:   "Check network connections and optimise bandwidth usage",
    PROCESSES: "End unnecessary background processes",
}


class RootCauseResolver:
    """
    Infers which upstream component most likely caused an anomaly.

    ``samples`` must provide ``latest_sample(component) -> Sample | None``
    (the SQLite ``Store`` does), ``disks`` must provide
    ``list_disks() -> list[DiskInfo]`` (the psutil ``Collector`` does).
    """

    def __init__(self, samples, disks,
                 topology: Optional[DependencyTopology] = None,
                 observed_disk_correlation: bool = False):
        self.samples  = samples
        self.disks    = disks
        self.topology = topology or DependencyTopology()
        self.observed_disk_correlation = observed_disk_correlation

    # ══════════════════════════════════════════
    # PUBLIC entry-point
    # ══════════════════════════════════════════

    def analyze_root_cause(self, affected: str) -> RootCauseResult:
        ts = int(time.time())
        try:
            return self._analyze(affected, ts)
        except Exception as e:
            logger.exception("Root cause analysis for %s failed", affected)
            return _failure_result(affected, ts, e)

    # ══════════════════════════════════════════
    # PRIVATE
    # ══════════════════════════════════════════

    def _analyze(self, affected: str, ts: int) -> RootCauseResult:
        metrics = self._component_samples(ts)
        known   = list(metrics)
        chain   = self.topology.dependency_chain(affected, known)

        correlations: Dict[str, float] = {}
        evidence:     List[str] = []
        suggestions:  List[str] = []
        max_corr   = 0.0
        root_cause = affected

        # Chain first, the affected component itself last: later wins ties.
        for comp in chain + [affected]:
            sample = metrics.get(comp)
            if sample is None:
                continue
            baseline = baseline_for(comp)
            corr = self.correlation(comp, sample, baseline)
            correlations[comp] = corr
            if corr > 0.0 and corr >= max_corr:
                max_corr   = corr
                root_cause = comp
            if is_abnormal(comp, sample, baseline):
                evidence.append(abnormal_evidence(comp, sample))
                suggestions.append(suggestion_for(comp))

        result = RootCauseResult(
            affected_component=affected,
            analysis_time=ts,
            analyzed_components=known,
            dependency_chain=chain,
            root_cause=root_cause,
            confidence=min(MAX_CONFIDENCE, max_corr * CONFIDENCE_GAIN),
            evidence="; ".join(evidence) if evidence else "No obvious anomaly found",
            suggestions=suggestions or ["System running normally"],
            correlations=correlations,
        )
        logger.info("Root cause for %s: %s (confidence %.2f, chain=%s)",
                    affected, result.root_cause, result.confidence, chain)
        return result

    def _component_samples(self, ts: int) -> Dict[str, Sample]:
        metrics: Dict[str, Sample] = {}
        for comp in CORE_COMPONENTS:
            s = self.samples.latest_sample(comp)
            if s is not None:
                metrics[comp] = s
        for d in self.disks.list_disks():
            key = d.component_key
            metrics[key] = Sample(ts=ts, component=key, disk_used_gb=float(d.used_gb))
        return metrics

    def correlation(self, component: str, sample: Sample, baseline: float) -> float:
        """Deviation above baseline normalised to [0, 1]."""
        deviation = 0.0
        if component == CPU and sample.cpu_pct is not None:
            deviation = max(0.0, sample.cpu_pct - baseline) / PERCENT_SCALE
        elif component == MEMORY and sample.mem_pct is not None:
            deviation = max(0.0, sample.mem_pct - baseline) / PERCENT_SCALE
        elif component == PROCESSES and sample.process_count is not None:
            deviation = max(0.0, sample.process_count - baseline) / PROCESS_SCALE
        elif is_disk_key(component) and sample.disk_used_gb is not None:
            if self.observed_disk_correlation:
                deviation = max(0.0, sample.disk_used_gb - baseline) / PERCENT_SCALE
            else:
                # Baseline-only score; the observed value does not take part.
                deviation = max(0.0, (baseline - 50.0) / 50.0)
        return min(1.0, deviation * CORRELATION_GAIN)


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────
def baseline_for(component: str) -> float:
    if is_disk_key(component):
        return DISK_BASELINE
    return COMPONENT_BASELINES.get(component, FALLBACK_BASELINE)


def is_abnormal(component: str, sample: Sample, baseline: float) -> bool:
    if component == CPU and sample.cpu_pct is not None:
        return sample.cpu_pct > baseline
    if component == MEMORY and sample.mem_pct is not None:
        return sample.mem_pct > baseline
    if component == PROCESSES and sample.process_count is not None:
        return sample.process_count > baseline
    if is_disk_key(component):
        return sample.disk_used_gb is not None and sample.disk_used_gb > DISK_ABNORMAL_GB
    return False


def abnormal_evidence(component: str, sample: Sample) -> str:
    if component == CPU:
        return f"CPU usage too high: {sample.cpu_pct:.1f}%"
    if component == MEMORY:
        return f"Memory usage too high: {sample.mem_pct:.1f}%"
    if component == PROCESSES:
        return f"Too many processes: {sample.process_count}"
    if is_disk_key(component):
        return f"Disk {disk_label(component)} used: {sample.disk_used_gb:.0f}GB"
    return f"{component} state abnormal"


def suggestion_for(component: str) -> str:
    if is_disk_key(component):
        return f"Clean up space on {disk_label(component)}, delete temporary files"
    return _SUGGESTIONS.get(component, f"Check {component} state")


def _failure_result(affected: str, ts: int, err: Exception) -> RootCauseResult:
    return RootCauseResult(
        affected_component=affected,
        analysis_time=ts,
        analyzed_components=list(CORE_COMPONENTS),
        dependency_chain=[],
        root_cause=affected,
        confidence=FAILURE_CONFIDENCE,
        evidence=f"Analysis service temporarily unavailable: {err}",
        suggestions=[f"Check {affected} resource usage", "Restart related services"],
    )
